"""
Conversions between records, ledgers and their text forms.

JSON is used for the editable record view and every JSON export; CSV only for
the history export. Probability helpers here are for display and never touch
stored results.
"""

from __future__ import annotations

import csv
import json
import math
from typing import Any, Dict, Iterable, Optional

import pandas as pd

from .errors import ParseError
from .record import default_record
from .schemas import PredictionResult

CSV_COLUMNS = ["time", "prediction", "pass_probability"]


def reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


def loads_strict(text: str) -> Any:
    """json.loads without the NaN and Infinity extensions."""
    return json.loads(text, parse_constant=reject_constant)


def to_pretty_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, allow_nan=False)


def record_to_text(record: Dict[str, Any]) -> str:
    return to_pretty_json(record)


def parse_object(text: str) -> Dict[str, Any]:
    """Parse text that must hold a JSON object."""
    try:
        obj = loads_strict(text)
    except (TypeError, ValueError) as e:
        raise ParseError(f"Invalid JSON: {e}") from e
    if not isinstance(obj, dict):
        raise ParseError("JSON must be an object.")
    return obj


def text_to_record(text: str, current: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Parse text and merge it over the current record.

    Keys in the text win; keys it leaves out keep their current value, so a
    partial upload never blanks the rest of the form.
    """
    parsed = parse_object(text)
    base = default_record() if current is None else current
    return {**base, **parsed}


def result_to_text(raw: Any) -> str:
    return to_pretty_json(raw)


def ledger_to_text(entries: Iterable[PredictionResult]) -> str:
    return to_pretty_json([e.model_dump() for e in entries])


def _cell(value: Any) -> str:
    return "" if value is None else str(value)


def ledger_to_csv(entries: Iterable[PredictionResult]) -> str:
    header = ",".join(CSV_COLUMNS) + "\n"
    rows = [[_cell(e.at), _cell(e.prediction), _cell(e.pass_probability)] for e in entries]
    if not rows:
        return header

    df = pd.DataFrame(rows, columns=CSV_COLUMNS, dtype=object)
    return header + df.to_csv(index=False, header=False, quoting=csv.QUOTE_ALL, lineterminator="\n")


def clamp_probability(x: Any) -> float:
    # bools are ints in Python but not probabilities
    if x is None or isinstance(x, bool):
        return 0.0
    try:
        n = float(x)
    except (TypeError, ValueError, OverflowError):
        return 0.0
    if not math.isfinite(n):
        return 0.0
    return max(0.0, min(1.0, n))


def probability_percent(x: Any) -> int:
    # half rounds up, like the progress bar label
    return int(math.floor(clamp_probability(x) * 100 + 0.5))


def is_pass(prediction: Any) -> bool:
    return not isinstance(prediction, bool) and prediction == 1
