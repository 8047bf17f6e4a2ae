"""
Keeps the form view and the JSON view of a record in step and drives a
prediction through the client, the health monitor and the history ledger.

Every error raised below this layer is caught here and turned into the one
user-facing `error` string.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Union

import requests

from .client import PredictionClient
from .config import Config
from .errors import FormatError, ParseError, PredictorError
from .health import HealthMonitor, HealthState
from .history import HistoryLedger
from .record import default_record
from .schemas import PredictionResult
from .serialization import (
    clamp_probability,
    is_pass,
    ledger_to_csv,
    ledger_to_text,
    parse_object,
    probability_percent,
    record_to_text,
    result_to_text,
    text_to_record,
)
from .storage import JsonFileStore

log = logging.getLogger(__name__)

OFFLINE_MESSAGE = "Backend appears offline. Open /docs once to wake the backend, then try again."
INVALID_JSON_MESSAGE = "Invalid JSON. Fix syntax (quotes/commas) and try again."
UPLOAD_FORMAT_MESSAGE = "Please upload a .json file."


class InputMode(str, Enum):
    FORM = "form"
    JSON = "json"


@dataclass(frozen=True)
class ControllerState:
    mode: InputMode = InputMode.FORM
    busy: bool = False
    error: str = ""
    result: Optional[PredictionResult] = None

    def with_mode(self, mode: Union[InputMode, str]) -> "ControllerState":
        return replace(self, mode=InputMode(mode))

    def with_error(self, error: str) -> "ControllerState":
        return replace(self, error=error)

    def showing(self, result: Optional[PredictionResult]) -> "ControllerState":
        return replace(self, result=result, error="")

    def cleared(self) -> "ControllerState":
        return replace(self, result=None, error="")

    def begin_submission(self) -> "ControllerState":
        if self.busy:
            raise RuntimeError("A submission is already in flight")
        return replace(self, busy=True, result=None, error="")

    def finish_submission(self, result: Optional[PredictionResult] = None, error: str = "") -> "ControllerState":
        if not self.busy:
            raise RuntimeError("No submission in flight")
        return replace(self, busy=False, result=result, error=error)


def require_json_filename(filename: str) -> None:
    if not filename.lower().endswith(".json"):
        raise FormatError(UPLOAD_FORMAT_MESSAGE)


class SyncController:
    def __init__(
        self,
        client: PredictionClient,
        ledger: HistoryLedger,
        monitor: Optional[HealthMonitor] = None,
    ):
        self.client = client
        self.ledger = ledger
        self.monitor = monitor

        self.state = ControllerState()
        self._form: Dict[str, Any] = default_record()
        self.json_text = record_to_text(self._form)

    # ---- views ----
    @property
    def form(self) -> Dict[str, Any]:
        return dict(self._form)

    @property
    def mode(self) -> InputMode:
        return self.state.mode

    @property
    def busy(self) -> bool:
        return self.state.busy

    @property
    def error(self) -> str:
        return self.state.error

    @property
    def result(self) -> Optional[PredictionResult]:
        return self.state.result

    @property
    def history(self) -> List[PredictionResult]:
        return self.ledger.entries

    @property
    def health(self) -> HealthState:
        return self.monitor.state if self.monitor is not None else HealthState.UNKNOWN

    @property
    def can_submit(self) -> bool:
        return not self.busy and self.health is not HealthState.OFFLINE

    @property
    def display_probability(self) -> float:
        return clamp_probability(self.result.pass_probability if self.result else None)

    @property
    def display_percent(self) -> int:
        return probability_percent(self.result.pass_probability if self.result else None)

    @property
    def display_pass(self) -> bool:
        return self.result is not None and is_pass(self.result.prediction)

    # ---- editing ----
    def _set_form(self, record: Dict[str, Any]) -> None:
        # the JSON view always follows the form
        text = record_to_text(record)
        self._form = dict(record)
        self.json_text = text

    def set_field(self, key: str, value: Any) -> None:
        self._set_form({**self._form, key: value})

    def set_json_text(self, text: str) -> None:
        self.json_text = text

    def set_mode(self, mode: Union[InputMode, str]) -> None:
        self.state = self.state.with_mode(mode)

    def apply_json(self) -> bool:
        """Merge the JSON view into the form. The form is untouched on failure."""
        try:
            merged = text_to_record(self.json_text, self._form)
        except ParseError as e:
            self.state = self.state.with_error(str(e))
            return False
        self._set_form(merged)
        self.state = self.state.with_error("")
        return True

    def import_file(self, filename: str, content: Union[bytes, str]) -> bool:
        try:
            require_json_filename(filename)
        except FormatError as e:
            self.state = self.state.with_error(str(e))
            return False

        try:
            text = content.decode("utf-8") if isinstance(content, bytes) else content
        except UnicodeDecodeError as e:
            self.state = self.state.with_error(f"Failed to read JSON file: {e}")
            return False

        self.json_text = text
        try:
            merged = text_to_record(text, self._form)
        except ParseError as e:
            self.state = self.state.with_error(f"Failed to read JSON file: {e}")
            return False

        self._set_form(merged)
        self.state = self.state.with_mode(InputMode.FORM).with_error("")
        log.info("Imported record from %s", filename)
        return True

    def reset(self) -> bool:
        if self.busy:
            return False
        self._set_form(default_record())
        self.state = self.state.cleared().with_mode(InputMode.FORM)
        return True

    def clear_result(self) -> None:
        self.state = self.state.cleared()

    # ---- submission ----
    def _payload(self) -> Optional[Dict[str, Any]]:
        if self.mode is InputMode.FORM:
            return dict(self._form)
        try:
            return parse_object(self.json_text)
        except ParseError:
            self.state = self.state.with_error(INVALID_JSON_MESSAGE)
            return None

    async def submit(self) -> Optional[PredictionResult]:
        if self.busy:
            log.debug("Submission ignored, another one is in flight")
            return None
        if self.health is HealthState.OFFLINE:
            self.state = self.state.with_error(OFFLINE_MESSAGE)
            return None

        payload = self._payload()
        if payload is None:
            return None

        self.state = self.state.begin_submission()
        result, error = None, ""
        try:
            result = await self.client.submit(payload)
            self.ledger.append(result)
        except PredictorError as e:
            error = str(e)
        finally:
            self.state = self.state.finish_submission(result=result, error=error)
        return result

    # ---- history ----
    def select_history(self, index: int) -> PredictionResult:
        entry = self.ledger[index]
        self.state = self.state.showing(entry)
        return entry

    def clear_history(self) -> None:
        self.ledger.clear()

    # ---- exports ----
    def export_input(self) -> str:
        return record_to_text(self._form)

    def export_result(self) -> Optional[str]:
        if self.result is None:
            return None
        return result_to_text(self.result.result_raw)

    def export_history_csv(self) -> str:
        return ledger_to_csv(self.ledger.entries)

    def export_history_json(self) -> str:
        return ledger_to_text(self.ledger.entries)


def build_controller(
    config: Config,
    session: Optional[requests.Session] = None,
    store=None,
) -> SyncController:
    """Wire the controller from settings; history is loaded from storage here."""
    store = store if store is not None else JsonFileStore(config.history_dir)

    # the monitor opens its own session unless one is handed in
    client = PredictionClient(
        config.api_base,
        session=session or requests.Session(),
        timeout=config.request_timeout,
    )
    monitor = HealthMonitor(
        config.api_base,
        session=session,
        interval=config.health_interval,
        timeout=config.request_timeout,
    )
    ledger = HistoryLedger(store, key=config.history_key, limit=config.history_limit)
    ledger.load()
    return SyncController(client, ledger, monitor=monitor)
