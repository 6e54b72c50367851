"""Delivery outcome model."""

from pydantic import BaseModel, Field


class DeliveryOutcome(BaseModel):
    """Result of one webhook request that received a response."""

    url: str = Field(..., description="Destination URL")
    status_code: int = Field(..., description="HTTP status returned by the destination")
    reason_phrase: str = Field(default="", description="HTTP reason phrase")
    elapsed_ms: int = Field(default=0, ge=0, description="Request latency in milliseconds")

    @property
    def ok(self) -> bool:
        """Whether the destination answered with a 2xx status."""
        return 200 <= self.status_code < 300
