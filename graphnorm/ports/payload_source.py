"""Port: nested input payloads to be normalized."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class PayloadSourcePort(ABC):
    """Supply one nested entity (a dict) or a list of them."""

    @abstractmethod
    def load(self) -> dict[str, Any] | list[dict[str, Any]]: ...
