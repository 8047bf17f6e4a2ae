import logging
from pathlib import Path
from typing import Dict, Optional

from .errors import StorageError

log = logging.getLogger(__name__)


class JsonFileStore:
    """Key/value text store, one `<key>.json` file per key under a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError(f"Could not read '{path}': {e}") from e

    def set(self, key: str, text: str) -> None:
        path = self._path(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            tmp = path.with_suffix(".tmp")
            tmp.write_text(text, encoding="utf-8")
            tmp.replace(path)
        except OSError as e:
            raise StorageError(f"Could not write '{path}': {e}") from e
        log.debug("Wrote %d bytes to %s", len(text), path)


class MemoryStore:
    """In-process store with the same interface as JsonFileStore."""

    def __init__(self, data: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, text: str) -> None:
        self.data[key] = text
