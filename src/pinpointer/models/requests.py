"""API request schemas."""
from pydantic import BaseModel, Field, field_validator


class AnalyzeRequest(BaseModel):
    """Request schema for starting an audit."""
    url: str = Field(..., min_length=1, description="Website to audit")
    gemini_key: str = Field(..., min_length=1, description="Gemini API key used for the AI reviewer")

    @field_validator("url", "gemini_key")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class ValidateKeyRequest(BaseModel):
    """Request schema for Gemini key validation."""
    gemini_key: str = Field(default="")
