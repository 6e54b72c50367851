"""Secret lookup for template parameters."""

import os
from abc import ABC, abstractmethod
from collections.abc import Mapping

from buildnotifier.core.exceptions import SecretNotFoundError
from buildnotifier.core.logging import get_logger

logger = get_logger(__name__)


class SecretGetter(ABC):
    """Abstract secret source."""

    @abstractmethod
    async def get_secret(self, name: str) -> str:
        """Return the secret stored under ``name``.

        Raises:
            SecretNotFoundError: If the secret does not exist
        """
        pass


class EnvSecretGetter(SecretGetter):
    """Secrets read from environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        self._environ = os.environ if environ is None else environ

    async def get_secret(self, name: str) -> str:
        value = self._environ.get(name)
        if value is None:
            logger.warning("Secret not found in environment", secret=name)
            raise SecretNotFoundError(f"Secret {name!r} is not set in the environment")
        return value
