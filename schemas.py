from pydantic import BaseModel, Field
from typing import List


class EncodedImage(BaseModel):
    data: str = Field(min_length=1)
    mime_type: str = Field(pattern=r"^image/")

    def data_uri(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


class CornerObservation(BaseModel):
    name: str
    angle: float = Field(strict=True, allow_inf_nan=False)
    comment: str


class AnalysisRecord(BaseModel):
    score: float = Field(ge=0, le=100, strict=True, allow_inf_nan=False)
    corners: List[CornerObservation] = Field(min_length=1)


class ErrorDetail(BaseModel):
    error: str
    message: str
