from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp(now: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a trailing Z."""
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ---- API schema ----
class PredictRequest(BaseModel):
    # the record goes through untouched, unknown keys included
    data: Dict[str, Any] = Field(..., description="Student record for one prediction")


class PredictionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    at: str
    prediction: Any = None
    pass_probability: Any = None
    result_raw: Any = Field(default_factory=dict)
    input: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_response(cls, body: Any, record: Dict[str, Any], at: Optional[str] = None) -> "PredictionResult":
        fields = body if isinstance(body, dict) else {}
        return cls(
            at=at or utc_timestamp(),
            prediction=fields.get("prediction"),
            pass_probability=fields.get("pass_probability"),
            result_raw=body,
            input=copy.deepcopy(record),
        )
