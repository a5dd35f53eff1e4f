# services/encoder.py
import base64
import inspect

from errors import EncodingError, InvalidInputError
from schemas import EncodedImage
from services.utils import debug


def _media_type(file) -> str:
    return (getattr(file, "content_type", None) or "").strip().lower()


async def _read_all(file) -> bytes:
    data = file.read()
    if inspect.isawaitable(data):
        data = await data
    return data


async def encode(file) -> EncodedImage:
    """
    Read an uploaded image and return its base64 payload.

    `file` is anything with a `content_type` and a `read()` that returns bytes,
    either directly or as an awaitable (FastAPI's UploadFile, the UI adapter).
    The media type is checked before the file is touched.
    """
    mime_type = _media_type(file) if file is not None else ""
    if not mime_type.startswith("image/"):
        raise InvalidInputError()

    try:
        raw = await _read_all(file)
    except Exception as e:
        debug("Error reading file:", e)
        raise EncodingError("Error reading file") from e

    if not isinstance(raw, (bytes, bytearray)):
        raise EncodingError(f"Error processing image: unexpected {type(raw).__name__} from reader")

    data_uri = f"data:{mime_type};base64,{base64.b64encode(raw).decode('ascii')}"
    _, _, payload = data_uri.partition(",")
    if not payload:
        raise EncodingError()

    return EncodedImage(data=payload, mime_type=mime_type)
