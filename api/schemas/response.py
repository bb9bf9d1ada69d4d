"""Error response schema"""
from pydantic import BaseModel, Field
from typing import Optional


class ErrorResponse(BaseModel):
    """Body of every domain error: {error, detail}"""
    error: str = Field(..., description="Short error category")
    detail: Optional[str] = Field(None, description="What went wrong")
