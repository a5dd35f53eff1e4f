# app.py
import asyncio
import os
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, File, HTTPException, Request, UploadFile

from errors import AnalyzerError
from schemas import AnalysisRecord, EncodedImage, ErrorDetail
from services.encoder import encode
from services.inference import InferenceClient, analyze_image, build_client
from services.utils import debug


@asynccontextmanager
async def lifespan(app: FastAPI):
    # one client handle per process; tests may install their own before startup
    if getattr(app.state, "client", None) is None:
        app.state.client = build_client()
    yield


app = FastAPI(title="Samosa Sharpness Analyzer API", lifespan=lifespan)


def get_client(request: Request) -> InferenceClient:
    return request.app.state.client


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, AnalyzerError):
        return HTTPException(
            status_code=e.http_status,
            detail=ErrorDetail(error=type(e).__name__, message=e.message).model_dump(),
        )
    return HTTPException(status_code=500, detail=f"review failed: {e}")


async def _analyze(client: InferenceClient, image: EncodedImage) -> AnalysisRecord:
    try:
        # the SDK call blocks
        return await asyncio.to_thread(analyze_image, client, image)
    except Exception as e:
        debug("Error analyzing image:", repr(e))
        raise _http_error(e)


@app.get("/")
def read_root():
    return {"status": "ok", "message": "Samosa Sharpness Analyzer is running."}


# --- Analyze endpoints ----------------------------------------------------
@app.post("/analyze", response_model=AnalysisRecord)
async def analyze(file: UploadFile = File(...), client: InferenceClient = Depends(get_client)):
    """
    Encode one uploaded image, run it through the model and return the
    validated analysis.
    """
    try:
        image = await encode(file)
    except AnalyzerError as e:
        raise _http_error(e)
    return await _analyze(client, image)


@app.post("/analyze/encoded", response_model=AnalysisRecord)
async def analyze_encoded(image: EncodedImage, client: InferenceClient = Depends(get_client)):
    """Same as /analyze for callers that already hold the base64 payload."""
    return await _analyze(client, image)


# If run directly for local dev
if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app:app", host="0.0.0.0", port=int(os.getenv("PORT", 8001)), reload=True)
