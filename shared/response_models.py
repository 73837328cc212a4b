"""
Common API response models.
"""

from pydantic import BaseModel, Field


class APIResponse(BaseModel):
    """Standard API response wrapper."""

    success: bool = Field(default=True, description="Whether the operation was successful")
    message: str = Field(default="Operation completed successfully", description="Response message")


class ErrorResponse(BaseModel):
    """Standard API error response."""

    success: bool = Field(default=False, description="Always false for errors")
    message: str = Field(..., description="Error message")
    error: str | None = Field(None, description="Detailed error information")
    error_code: str | None = Field(None, description="Error code for programmatic handling")
