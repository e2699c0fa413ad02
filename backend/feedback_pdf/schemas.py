from __future__ import annotations

from pydantic import BaseModel, Field


class PdfRequest(BaseModel):
    markdown: str = Field(min_length=1)
    filename: str | None = None
    title: str | None = None
    subtitle: str | None = None
    score: int | None = Field(default=None, ge=0, le=100)
    created_at: str | None = None


class PdfErrorResponse(BaseModel):
    error: str
    detail: str | None = None


class HealthResponse(BaseModel):
    ok: bool = True
    fonts_registered: bool
