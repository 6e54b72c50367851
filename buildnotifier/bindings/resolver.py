"""Resolution of template parameters against a build."""

import re
from abc import ABC, abstractmethod

from buildnotifier.bindings.secrets import SecretGetter
from buildnotifier.core.exceptions import BindingResolutionError
from buildnotifier.core.logging import get_logger
from buildnotifier.models.build import Build
from buildnotifier.models.config import SecretRef

logger = get_logger(__name__)

# $(build.id), $(build.substitutions._BRANCH), $(secrets.webhook-token)
REFERENCE_PATTERN = re.compile(r"\$\((?P<ref>[A-Za-z_][\w.\-]*)\)")

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


class BindingResolver(ABC):
    """Resolves named template parameters for a build."""

    @abstractmethod
    async def resolve(self, params: dict[str, str] | None, build: Build) -> dict[str, str]:
        """Resolve parameters for one build.

        Args:
            params: Additional parameters merged over the configured ones
            build: Build being notified about

        Returns:
            Parameter name to resolved value

        Raises:
            BindingResolutionError: If any reference cannot be resolved
        """
        pass


class ParamBindingResolver(BindingResolver):
    """Expands ``$(build.*)`` and ``$(secrets.*)`` references in parameters."""

    def __init__(
        self,
        params: dict[str, str] | None = None,
        secrets: list[SecretRef] | None = None,
        secret_getter: SecretGetter | None = None,
    ):
        self._params = dict(params or {})
        self._secrets = {ref.name: ref.value for ref in secrets or []}
        self._secret_getter = secret_getter

    async def resolve(self, params: dict[str, str] | None, build: Build) -> dict[str, str]:
        merged = {**self._params, **(params or {})}
        bindings: dict[str, str] = {}
        for name, template in merged.items():
            bindings[name] = await self._expand(template, build)
        return bindings

    async def _expand(self, value: str, build: Build) -> str:
        parts: list[str] = []
        position = 0
        for match in REFERENCE_PATTERN.finditer(value):
            parts.append(value[position:match.start()])
            parts.append(await self._lookup(match.group("ref"), build))
            position = match.end()
        parts.append(value[position:])
        return "".join(parts)

    async def _lookup(self, ref: str, build: Build) -> str:
        scope, _, path = ref.partition(".")
        if scope == "build" and path:
            return self._build_value(path, build)
        if scope == "secrets" and path:
            return await self._secret_value(path, build)
        raise BindingResolutionError(f"Unknown reference $({ref})", build_id=build.id)

    def _build_value(self, path: str, build: Build) -> str:
        field, _, key = path.partition(".")
        field = _CAMEL_BOUNDARY.sub("_", field).lower()

        if field == "substitutions" and key:
            if key not in build.substitutions:
                raise BindingResolutionError(
                    f"Build has no substitution {key!r}",
                    build_id=build.id,
                )
            return build.substitutions[key]

        if key or field not in type(build).model_fields:
            raise BindingResolutionError(f"Unknown build field {path!r}", build_id=build.id)

        value = build.to_view()[field]
        if value is None:
            return ""
        if isinstance(value, list):
            return ",".join(str(item) for item in value)
        return str(value)

    async def _secret_value(self, name: str, build: Build) -> str:
        locator = self._secrets.get(name)
        if locator is None:
            raise BindingResolutionError(f"Unknown secret {name!r}", build_id=build.id)
        if self._secret_getter is None:
            raise BindingResolutionError(
                f"Secret {name!r} referenced but no secret getter is configured",
                build_id=build.id,
            )
        secret = await self._secret_getter.get_secret(locator)
        logger.debug("Secret resolved", secret=name, build_id=build.id)
        return secret
