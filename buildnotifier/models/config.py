"""Notifier configuration document models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class TemplateSpec(BaseModel):
    """Where the message template comes from."""

    type: str = Field(default="jinja", description="Template language")
    uri: str | None = Field(default=None, description="Template file path or file:// URI")
    content: str | None = Field(default=None, description="Inline template source")


class SecretRef(BaseModel):
    """Named reference to a secret resolved by a secret getter."""

    name: str = Field(..., min_length=1, description="Name used in $(secrets.<name>)")
    value: str = Field(..., min_length=1, description="Secret locator passed to the getter")


class NotificationSpec(BaseModel):
    """Filter, delivery target and template for one notifier."""

    filter: str = Field(..., description="Filter expression, e.g. 'status == SUCCESS'")
    delivery: dict[str, Any] = Field(
        default_factory=dict,
        description="Delivery settings; must contain a string `url`",
    )
    template: TemplateSpec | None = Field(default=None)
    params: dict[str, str] = Field(
        default_factory=dict,
        description="Template parameters, values may reference $(build.*) or $(secrets.*)",
    )


class NotifierSpec(BaseModel):
    """Notifier spec section."""

    notification: NotificationSpec
    secrets: list[SecretRef] = Field(default_factory=list)


class NotifierMetadata(BaseModel):
    """Notifier metadata section."""

    name: str = Field(default="", description="Notifier name used in logs")


class NotifierConfig(BaseModel):
    """Complete notifier configuration document."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    api_version: str = Field(default="cloud-build-notifiers/v1", alias="apiVersion")
    kind: str = Field(default="HTTPNotifier")
    metadata: NotifierMetadata = Field(default_factory=NotifierMetadata)
    spec: NotifierSpec
