# services/validator.py
import json
import re
from typing import Any, Dict

from pydantic import ValidationError

from errors import InvalidAnalysisShapeError, NoStructuredPayloadError, NoSubjectDetectedError
from schemas import AnalysisRecord

REFUSAL_MARKERS = ("sorry", "unable to")
UNPARSABLE_MESSAGE = "Could not analyze the image properly. Please try with a different image."

# Greedy on purpose: first "{" to last "}". Prose with stray braces around the
# payload can make this capture the wrong span.
_JSON_SPAN = re.compile(r"\{[\s\S]*\}")


def _is_refusal(txt: str) -> bool:
    lowered = txt.lower()
    return any(marker in lowered for marker in REFUSAL_MARKERS)


def _extract_json(txt: str) -> Dict[str, Any]:
    m = _JSON_SPAN.search(txt)
    if not m:
        raise NoStructuredPayloadError()
    try:
        obj = json.loads(m.group(0))
    except json.JSONDecodeError as e:
        raise NoStructuredPayloadError(UNPARSABLE_MESSAGE) from e
    if not isinstance(obj, dict):
        raise NoStructuredPayloadError(UNPARSABLE_MESSAGE)
    return obj


def validate(raw_text: str) -> AnalysisRecord:
    """
    Turn a free-form model reply into an AnalysisRecord.

    Order matters: a refusal wins over an embedded JSON object, an unparsable
    reply wins over a wrong shape.
    """
    txt = raw_text or ""
    if _is_refusal(txt):
        raise NoSubjectDetectedError()

    data = _extract_json(txt)
    if not data.get("score") or not data.get("corners"):
        raise InvalidAnalysisShapeError()

    try:
        return AnalysisRecord.model_validate(data)
    except ValidationError as e:
        raise InvalidAnalysisShapeError() from e
