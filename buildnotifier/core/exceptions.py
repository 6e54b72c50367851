"""Notifier error taxonomy.

Setup errors (``ConfigurationError``, ``FilterCompileError``,
``TemplateParseError``) mean no notifier is constructed. Every other error is
scoped to a single ``handle`` call and carries the pipeline stage that failed.
"""


class NotifierError(Exception):
    """Base class for all notifier errors."""

    stage: str = ""

    def __init__(self, message: str, *, build_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.build_id = build_id

    def to_dict(self) -> dict[str, str | None]:
        """Error details suitable for a JSON response body."""
        return {
            "error": type(self).__name__,
            "stage": self.stage or None,
            "build_id": self.build_id,
            "detail": self.message,
        }


# Setup-time errors


class ConfigurationError(NotifierError):
    """Notifier configuration is missing or has the wrong shape."""

    stage = "setup"


class FilterCompileError(NotifierError):
    """Filter expression is malformed or references unknown names."""

    stage = "setup"


class TemplateParseError(NotifierError):
    """Message template has invalid syntax."""

    stage = "setup"


# Per-event errors


class BindingResolutionError(NotifierError):
    """Template parameters could not be resolved for a build."""

    stage = "bindings"


class SecretNotFoundError(BindingResolutionError):
    """A referenced secret is not available."""


class URLMalformedError(NotifierError):
    """Build log URL could not be parsed for annotation."""

    stage = "annotate"


class TemplateExecError(NotifierError):
    """Template rendering failed for a build."""

    stage = "render"


class PayloadEncodingError(NotifierError):
    """Rendered message could not be encoded as a JSON payload."""

    stage = "encode"


class DeliveryTransportError(NotifierError):
    """Webhook request never received a response."""

    stage = "deliver"


class DeliveryTimeoutError(DeliveryTransportError):
    """Webhook request exceeded its deadline."""
