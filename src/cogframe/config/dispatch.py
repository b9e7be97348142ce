import os
from typing import List

from .core import _as_bool, _split_ids
from .loader import section


class Dispatch:
    def __init__(self, config: dict | None = None) -> None:
        dispatch_cfg = section(config, "cogframe", "dispatch")

        self.BLOCK_CLIENT: bool = _as_bool(dispatch_cfg.get("block_client", os.getenv("BLOCK_CLIENT", "true")))
        self.BLOCK_BOTS: bool = _as_bool(dispatch_cfg.get("block_bots", os.getenv("BLOCK_BOTS", "true")))
        self.SKIP_BUILTIN_POST_INHIBITORS: bool = _as_bool(
            dispatch_cfg.get(
                "skip_builtin_post_inhibitors",
                os.getenv("SKIP_BUILTIN_POST_INHIBITORS", "false"),
            )
        )

        ignore_cfg = dispatch_cfg.get("ignore_permission_ids")
        if ignore_cfg:
            self.IGNORE_PERMISSION_IDS: List[int] = [int(uid) for uid in ignore_cfg]
        else:
            self.IGNORE_PERMISSION_IDS = _split_ids(os.getenv("IGNORE_PERMISSION_IDS", ""))

        # Seconds a command may run while holding its lock key; unset means no limit.
        timeout_raw = dispatch_cfg.get("execution_timeout", os.getenv("EXECUTION_TIMEOUT"))
        self.EXECUTION_TIMEOUT: float | None = float(timeout_raw) if timeout_raw not in (None, "") else None
