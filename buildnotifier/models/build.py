"""Build event domain models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class BuildStatus(str, Enum):
    """Build lifecycle status."""

    STATUS_UNKNOWN = "STATUS_UNKNOWN"
    PENDING = "PENDING"
    QUEUED = "QUEUED"
    WORKING = "WORKING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"
    EXPIRED = "EXPIRED"


def _camel(name: str) -> AliasChoices:
    head, *rest = name.split("_")
    return AliasChoices(name, head + "".join(part.title() for part in rest))


class Build(BaseModel):
    """One build execution as published by the build service.

    Accepts both the service's camelCase JSON and snake_case keys. Instances
    are frozen; derived values go into copies via ``model_copy``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., description="Build identifier")
    project_id: str = Field(default="", validation_alias=_camel("project_id"))
    status: BuildStatus = Field(default=BuildStatus.STATUS_UNKNOWN, description="Build status")
    status_detail: str = Field(default="", validation_alias=_camel("status_detail"))
    log_url: str = Field(
        default="",
        validation_alias=_camel("log_url"),
        description="URL of the build logs",
    )
    build_trigger_id: str = Field(default="", validation_alias=_camel("build_trigger_id"))
    substitutions: dict[str, str] = Field(default_factory=dict)
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    create_time: datetime | None = Field(default=None, validation_alias=_camel("create_time"))
    start_time: datetime | None = Field(default=None, validation_alias=_camel("start_time"))
    finish_time: datetime | None = Field(default=None, validation_alias=_camel("finish_time"))

    def to_view(self) -> dict[str, Any]:
        """Plain JSON-compatible mapping of the build for filters and templates."""
        return self.model_dump(mode="json")


BUILD_FIELDS: frozenset[str] = frozenset(Build.model_fields)
