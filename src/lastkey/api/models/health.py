"""Health check response models."""

from pydantic import BaseModel


class HealthResponse(BaseModel):
    """Health check response model.

    Attributes:
        status: Health status string (e.g., "healthy").
        scheduler_running: Whether the reconcilers are looping.
    """

    status: str
    scheduler_running: bool
