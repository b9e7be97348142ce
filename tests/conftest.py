import os, sys
import warnings
from pathlib import Path

# Add src/ to sys.path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

# Keep handler defaults independent of the developer's environment
for _name in (
    "OWNER_IDS",
    "COMMAND_DIR",
    "INHIBITOR_DIR",
    "LISTENER_DIR",
    "CONTEXT_MENU_DIR",
    "BLOCK_CLIENT",
    "BLOCK_BOTS",
    "SKIP_BUILTIN_POST_INHIBITORS",
    "IGNORE_PERMISSION_IDS",
    "EXECUTION_TIMEOUT",
    "COGFRAME_CONFIG",
):
    os.environ.pop(_name, None)
os.environ.setdefault("DISCORD_API_TOKEN", "test-token")

# Silence deprecation warnings surfaced from third-party dependencies during tests
warnings.filterwarnings(
    "ignore", category=DeprecationWarning, module=r"^discord\\.player$"
)
warnings.filterwarnings("ignore", "'audioop' is deprecated", DeprecationWarning)


def pytest_configure(config):
    warnings.filterwarnings(
        "ignore", category=DeprecationWarning, module=r"^discord\\.player$"
    )
    warnings.filterwarnings("ignore", "'audioop' is deprecated", DeprecationWarning)
