from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from gantt.domain.ordering.ports import KeyValueStorage

logger = logging.getLogger(__name__)


class JsonFileStorage(KeyValueStorage):
    """
    One JSON object per file: {key: serialized value}.

    A missing file reads as empty. An unreadable or corrupt file is treated
    as empty and overwritten on the next write.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _read_all(self) -> Dict[str, str]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        except UnicodeDecodeError as e:
            logger.warning("Preference file %s is not valid UTF-8, ignoring it: %s", self._path, e)
            return {}
        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning("Preference file %s is corrupt, ignoring it: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Preference file %s does not hold an object, ignoring it", self._path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self._path.parent.mkdir(parents=True, exist_ok=True)
        # write to a sibling temp file, then swap it in
        fd, tmp = tempfile.mkstemp(prefix=self._path.name, suffix=".tmp", dir=str(self._path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self._path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise


def user_storage_factory(prefs_dir: Path):
    """storage_factory(user_id) -> JsonFileStorage under prefs_dir."""
    base = Path(prefs_dir)

    def factory(user_id: int) -> KeyValueStorage:
        return JsonFileStorage(base / f"{user_id}.json")

    return factory
