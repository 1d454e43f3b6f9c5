"""Payload source adapter: JSON document or JSONL file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from graphnorm.ports.payload_source import PayloadSourcePort


class JsonFilePayloadSource(PayloadSourcePort):
    """Load nested entities from disk.

    A ``.jsonl`` file yields a list with one entity per non-blank line.
    Anything else is parsed as a single JSON document, which may be one
    object or an array of objects.
    """

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    def load(self) -> dict[str, Any] | list[dict[str, Any]]:
        if not self._path.exists():
            raise FileNotFoundError(f"Payload file not found: {self._path}")

        text = self._path.read_text(encoding="utf-8")

        if self._path.suffix == ".jsonl":
            items: list[dict[str, Any]] = []
            for lineno, line in enumerate(text.splitlines(), start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    items.append(json.loads(line))
                except json.JSONDecodeError as exc:
                    raise ValueError(f"{self._path}:{lineno}: {exc}") from exc
            return items

        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ValueError(f"Cannot parse payload {self._path}: {exc}") from exc
        if not isinstance(data, (dict, list)):
            raise ValueError(f"Payload {self._path} must be a JSON object or array")
        return data
