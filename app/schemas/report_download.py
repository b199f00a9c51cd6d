"""Pydantic schemas for the report download endpoint."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from app.core.config import settings


class ReportDownloadRequest(BaseModel):
    """Email capture form submitted before the report is released."""

    email: EmailStr = Field(
        ...,
        description="Address the confirmation email is sent to (max 200 characters).",
        examples=["jane.doe@example.com"],
    )

    @field_validator("email", mode="before")
    @classmethod
    def _check_length(cls, value: Any) -> Any:
        if isinstance(value, str) and len(value) > settings.app.max_email_chars:
            raise ValueError("Email is too long")
        return value


class ReportDownloadResponse(BaseModel):
    """Successful download grant."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = Field(
        default=True,
        description="Always true for a granted download.",
    )
    message: str = Field(
        ...,
        description="Human-readable confirmation message.",
    )
    download_url: str = Field(
        ...,
        alias="downloadUrl",
        description="Relative or absolute URL of the report.",
    )


class ErrorResponse(BaseModel):
    """Body returned for every non-2xx response of the endpoint."""

    success: bool = Field(default=False)
    message: str = Field(..., description="Human-readable error message.")
