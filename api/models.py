"""
API-only response models. Domain request/response schemas live in catalog.schemas.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error message")
    detail: Optional[str] = Field(None, description="Additional error details")
    status_code: int = Field(..., description="HTTP status code")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="API version")
    database_status: str = Field(..., description="Database connection status")


class StatsResponse(BaseModel):
    """Document counts of the library collections."""
    authors: int = Field(..., description="Number of authors")
    books: int = Field(..., description="Number of books")
    comments: int = Field(..., description="Number of visible comments")
    users: int = Field(..., description="Number of registered users")
