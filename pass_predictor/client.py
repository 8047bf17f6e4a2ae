from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict, Optional

import requests

from .errors import NetworkError, ServiceError
from .schemas import PredictionResult, PredictRequest
from .serialization import reject_constant

log = logging.getLogger(__name__)


def error_message(body: Any) -> str:
    """Prefer the service's `detail` field, fall back to the whole body."""
    if isinstance(body, dict) and body.get("detail"):
        detail = body["detail"]
        # FastAPI validation errors carry a list here
        return detail if isinstance(detail, str) else json.dumps(detail, ensure_ascii=False)
    return json.dumps(body, ensure_ascii=False)


class PredictionClient:
    """
    Sends one record to `POST {api_base}/predict` and builds the result.

    The client keeps no state between calls; callers are expected to avoid
    overlapping submissions themselves.
    """

    def __init__(
        self,
        api_base: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        self.api_base = api_base.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    @property
    def predict_url(self) -> str:
        return f"{self.api_base}/predict"

    @property
    def docs_url(self) -> str:
        return f"{self.api_base}/docs"

    def predict(self, record: Dict[str, Any]) -> PredictionResult:
        payload = PredictRequest(data=record).model_dump()

        try:
            r = self.session.post(self.predict_url, json=payload, timeout=self.timeout)
        except requests.RequestException as e:
            log.warning("Predict request to %s failed: %s", self.predict_url, e)
            raise NetworkError(f"API call failed: {e}") from e

        try:
            body = r.json(parse_constant=reject_constant)
        except ValueError:
            body = {}

        if not 200 <= r.status_code < 300:
            message = error_message(body)
            log.warning("Predict returned HTTP %s: %s", r.status_code, message)
            raise ServiceError(message, status_code=r.status_code, body=body)

        result = PredictionResult.from_response(body, record)
        log.info("Prediction=%s pass_probability=%s", result.prediction, result.pass_probability)
        return result

    async def submit(self, record: Dict[str, Any]) -> PredictionResult:
        return await asyncio.to_thread(self.predict, record)
