"""Pydantic models for JSON request bodies."""

from pydantic import BaseModel, ConfigDict, Field


class RestoreRequest(BaseModel):
    """Photo restoration payload."""

    model_config = ConfigDict(populate_by_name=True)

    prompt: str | None = None
    mime_type: str | None = Field(default=None, alias="mimeType")
    data: str | None = None
    model: str | None = None


class RestoreTextRequest(BaseModel):
    """Text-only generation payload."""

    prompt: str | None = None
    model: str | None = None


class BuyCreditsRequest(BaseModel):
    credits: int | str | None = None


class ConfirmRequest(BaseModel):
    session_id: str | None = None
