"""Pub/Sub push request and notification response schemas."""

import base64
import binascii
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from buildnotifier.models.build import Build


class PubSubMessage(BaseModel):
    """Message part of a Pub/Sub push envelope."""

    model_config = ConfigDict(populate_by_name=True)

    data: str = Field(default="", description="Base64 encoded build JSON")
    attributes: dict[str, str] = Field(default_factory=dict)
    message_id: str = Field(default="", alias="messageId")
    publish_time: datetime | None = Field(default=None, alias="publishTime")

    def decode_data(self) -> bytes:
        """Return the decoded message payload.

        Raises:
            ValueError: If the data is not valid base64
        """
        try:
            return base64.b64decode(self.data, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Message data is not valid base64: {e}") from e

    def to_build(self) -> Build:
        """Parse the payload as a build event.

        Raises:
            ValueError: If the payload is not a valid build
        """
        return Build.model_validate_json(self.decode_data())


class PubSubPushRequest(BaseModel):
    """Push envelope delivered by a Pub/Sub subscription."""

    message: PubSubMessage
    subscription: str = Field(default="")


class NotificationResult(BaseModel):
    """Result of handling one pushed build event."""

    build_id: str
    delivered: bool = Field(..., description="Whether a webhook request was sent")
    status_code: int | None = Field(default=None, description="Destination response status")
