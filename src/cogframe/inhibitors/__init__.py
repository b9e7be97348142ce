from __future__ import annotations

from .handler import InhibitorHandler
from .inhibitor import Inhibitor

__all__ = ["Inhibitor", "InhibitorHandler"]
