# services/inference.py
import os
from typing import Optional

from openai import OpenAI

from errors import InferenceError
from prompts import ANALYSIS_PROMPT
from schemas import AnalysisRecord, EncodedImage
from services.utils import debug
from services.validator import validate

GEMINI_BASE_URL = os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta/openai/")
ANALYSIS_MODEL = os.getenv("ANALYSIS_MODEL", "gemini-2.0-flash")

# Sampling policy. The upstream top-k (16) has no chat-completions equivalent.
GENERATION_CONFIG = {
    "temperature": 0.2,
    "top_p": 0.8,
    "max_tokens": 1024,
}


class InferenceClient:
    """Sends one image plus the fixed prompt to the model and returns its text."""

    def __init__(self, client: OpenAI, model: str = ANALYSIS_MODEL):
        self._client = client
        self.model = model

    def generate(self, image: EncodedImage) -> str:
        debug("Sending request to Gemini API...")
        resp = self._client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "user", "content": [
                    {"type": "text", "text": ANALYSIS_PROMPT.strip()},
                    {"type": "image_url", "image_url": {"url": image.data_uri()}},
                ]}
            ],
            **GENERATION_CONFIG,
        )
        if not resp or not resp.choices:
            raise InferenceError()

        debug("Got response from Gemini API")
        txt = (resp.choices[0].message.content or "").strip()
        debug("Raw response:", txt)
        if not txt:
            raise InferenceError()
        return txt


def build_client(api_key: Optional[str] = None, base_url: str = GEMINI_BASE_URL) -> InferenceClient:
    key = api_key if api_key is not None else os.getenv("GEMINI_API_KEY", "")
    if not key:
        raise RuntimeError("GEMINI_API_KEY not set")
    return InferenceClient(OpenAI(api_key=key, base_url=base_url))


def analyze_image(client: InferenceClient, image: EncodedImage) -> AnalysisRecord:
    return validate(client.generate(image))
