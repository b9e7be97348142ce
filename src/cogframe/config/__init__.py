"""Framework configuration"""

import logging
from dotenv import load_dotenv

from .loader import load_raw_config
from .core import Core
from .dispatch import Dispatch

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("discord.gateway").setLevel(logging.WARNING)

_RAW_CONFIG = load_raw_config()

core = Core(_RAW_CONFIG)
dispatch = Dispatch(_RAW_CONFIG)


class Config:
    core = core
    dispatch = dispatch


__all__ = ["core", "dispatch", "Config", "load_raw_config"]
