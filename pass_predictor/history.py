import json
import logging
from typing import Iterator, List

from pydantic import ValidationError

from .config import HISTORY_KEY, HISTORY_LIMIT
from .errors import StorageError
from .schemas import PredictionResult
from .serialization import loads_strict

log = logging.getLogger(__name__)


class HistoryLedger:
    """
    Newest-first list of past predictions, capped at `limit` entries.

    Every mutation is written straight through to the store. Loading never
    fails: anything unreadable comes back as an empty ledger.
    """

    def __init__(self, store, key: str = HISTORY_KEY, limit: int = HISTORY_LIMIT):
        self.store = store
        self.key = key
        self.limit = limit
        self._entries: List[PredictionResult] = []

    @property
    def entries(self) -> List[PredictionResult]:
        # deep copies, stored results never change once appended
        return [e.model_copy(deep=True) for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> PredictionResult:
        return self._entries[index].model_copy(deep=True)

    def __iter__(self) -> Iterator[PredictionResult]:
        return iter(self.entries)

    def append(self, result: PredictionResult) -> None:
        self._entries = [result.model_copy(deep=True), *self._entries][: self.limit]
        self.save()

    def clear(self) -> None:
        self._entries = []
        self.save()

    def load(self) -> List[PredictionResult]:
        self._entries = self._read()[: self.limit]
        return self.entries

    def _read(self) -> List[PredictionResult]:
        try:
            text = self.store.get(self.key)
        except StorageError as e:
            log.warning("History unreadable, starting empty: %s", e)
            return []
        if not text:
            return []

        try:
            raw = loads_strict(text)
        except ValueError:
            log.warning("History under '%s' is not valid JSON, starting empty", self.key)
            return []
        if not isinstance(raw, list):
            log.warning("History under '%s' is not a list, starting empty", self.key)
            return []

        entries = []
        for item in raw:
            try:
                entries.append(PredictionResult.model_validate(item))
            except ValidationError:
                log.warning("Dropping malformed history entry: %r", item)
        return entries

    def save(self) -> None:
        text = json.dumps([e.model_dump() for e in self._entries[: self.limit]], ensure_ascii=False)
        try:
            self.store.set(self.key, text)
        except StorageError as e:
            # best effort: the in-memory ledger stays authoritative
            log.warning("History not persisted: %s", e)
