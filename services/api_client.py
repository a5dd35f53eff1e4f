# services/api_client.py
import asyncio
import os

import requests
from pydantic import ValidationError

from errors import ERRORS_BY_NAME, AnalyzerError
from schemas import AnalysisRecord, EncodedImage

API_BASE = os.getenv("API_BASE", "http://127.0.0.1:8001")
API_TIMEOUT_S = float(os.getenv("API_TIMEOUT_S", "120"))


def _error_from_response(r: requests.Response) -> Exception:
    try:
        detail = r.json().get("detail")
    except ValueError:
        detail = None

    if isinstance(detail, dict):
        cls = ERRORS_BY_NAME.get(detail.get("error"), AnalyzerError)
        return cls(detail.get("message") or "")
    if isinstance(detail, str) and detail:
        return AnalyzerError(detail)
    return AnalyzerError(f"/analyze/encoded → {r.status_code}: {r.text[:200]}")


class ApiAnalyzer:
    """Runs the analyze step against the HTTP API."""

    def __init__(self, api_base: str = API_BASE, timeout: float = API_TIMEOUT_S):
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout

    def analyze(self, image: EncodedImage) -> AnalysisRecord:
        r = requests.post(
            self.api_base + "/analyze/encoded",
            json=image.model_dump(),
            timeout=self.timeout,
        )
        if not r.ok:
            raise _error_from_response(r)
        try:
            return AnalysisRecord.model_validate(r.json())
        except (ValueError, ValidationError) as e:
            raise AnalyzerError() from e

    async def __call__(self, image: EncodedImage) -> AnalysisRecord:
        # requests blocks; keep the event loop free for the caption ticker
        return await asyncio.to_thread(self.analyze, image)
