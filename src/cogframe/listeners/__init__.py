from __future__ import annotations

from .handler import ListenerHandler
from .listener import Listener

__all__ = ["Listener", "ListenerHandler"]
