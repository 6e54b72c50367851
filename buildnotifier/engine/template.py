"""Message templates rendered with Jinja2."""

from typing import Any

from jinja2 import StrictUndefined, TemplateError, TemplateSyntaxError
from jinja2.sandbox import SandboxedEnvironment

from buildnotifier.core.exceptions import TemplateExecError, TemplateParseError
from buildnotifier.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TEMPLATE_NAME = "http_template"

# Templates come from configuration, so they run sandboxed and fail loudly on
# undefined names instead of rendering empty strings.
_environment = SandboxedEnvironment(
    undefined=StrictUndefined,
    autoescape=False,
    keep_trailing_newline=True,
)


class CompiledTemplate:
    """Parsed message template."""

    def __init__(self, name: str, source: str):
        self.name = name
        try:
            self._template = _environment.from_string(source)
        except TemplateSyntaxError as e:
            raise TemplateParseError(
                f"Failed to parse template {name!r} at line {e.lineno}: {e.message}"
            ) from e

    def render(self, view: dict[str, Any], *, build_id: str | None = None) -> str:
        """Render the template against a view.

        Args:
            view: Mapping exposed to the template, usually ``build`` and ``params``
            build_id: Build identifier attached to errors

        Returns:
            Rendered message

        Raises:
            TemplateExecError: If the template references missing data or
                fails while rendering
        """
        try:
            return self._template.render(view)
        except (TemplateError, TypeError, ValueError, ArithmeticError, LookupError) as e:
            raise TemplateExecError(
                f"Failed to render template {self.name!r}: {e}",
                build_id=build_id,
            ) from e


def compile_template(source: str, name: str = DEFAULT_TEMPLATE_NAME) -> CompiledTemplate:
    """Parse a template source.

    Raises:
        TemplateParseError: If the source has invalid syntax
    """
    template = CompiledTemplate(name, source)
    logger.debug("Template compiled", template=name)
    return template
