import logging
import os
from typing import List

from .loader import section

logger = logging.getLogger(__name__)


def _split_ids(raw: str) -> List[int]:
    return [int(uid.strip()) for uid in raw.split(",") if uid.strip()]


def _as_bool(raw: object) -> bool:
    if isinstance(raw, bool):
        return raw
    return str(raw).strip().lower() in {"1", "true", "yes", "on"}


class Core:
    def __init__(self, config: dict | None = None) -> None:
        discord_cfg = section(config, "cogframe", "discord")
        modules_cfg = section(config, "cogframe", "modules")

        token_env = str(discord_cfg.get("token_env", "DISCORD_API_TOKEN"))
        self.DISCORD_API_TOKEN: str | None = os.getenv(token_env)

        owner_ids_cfg = discord_cfg.get("owner_ids")
        if owner_ids_cfg:
            self.OWNER_IDS: List[int] = [int(uid) for uid in owner_ids_cfg]
        else:
            self.OWNER_IDS = _split_ids(os.getenv("OWNER_IDS", ""))

        self.COMMAND_DIR: str | None = modules_cfg.get("command_dir") or os.getenv("COMMAND_DIR")
        self.INHIBITOR_DIR: str | None = modules_cfg.get("inhibitor_dir") or os.getenv("INHIBITOR_DIR")
        self.LISTENER_DIR: str | None = modules_cfg.get("listener_dir") or os.getenv("LISTENER_DIR")
        self.CONTEXT_MENU_DIR: str | None = modules_cfg.get("context_menu_dir") or os.getenv("CONTEXT_MENU_DIR")
        self.AUTOMATE_CATEGORIES: bool = _as_bool(
            modules_cfg.get("automate_categories", os.getenv("AUTOMATE_CATEGORIES", "false"))
        )

        if not self.OWNER_IDS:
            logger.debug("No OWNER_IDS configured; owner-only commands will always be blocked.")
