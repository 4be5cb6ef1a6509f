import json
import logging
import os
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


class JsonFileLanguageRegistry:
    """Language registry persisted as ``{"languages": [...]}`` in one JSON file."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> list[dict[str, Any]]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Language registry %s is unreadable: %s", self.path, e)
            return []

        entries = data.get("languages") if isinstance(data, dict) else data
        if not isinstance(entries, list):
            logger.warning("Language registry %s has no language list", self.path)
            return []
        return [entry for entry in entries if isinstance(entry, dict)]

    def save(self, entries: list[dict[str, Any]]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump({"languages": entries}, f, ensure_ascii=False, indent=2)
        os.replace(tmp, self.path)
