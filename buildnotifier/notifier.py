"""HTTP notifier: filter, render and deliver build events."""

import httpx

from buildnotifier.bindings.resolver import BindingResolver, ParamBindingResolver
from buildnotifier.bindings.secrets import SecretGetter
from buildnotifier.core.exceptions import BindingResolutionError, ConfigurationError, NotifierError
from buildnotifier.core.logging import get_logger
from buildnotifier.delivery.client import WebhookClient
from buildnotifier.engine.predicate import Predicate, compile_predicate
from buildnotifier.engine.template import CompiledTemplate, compile_template
from buildnotifier.engine.urls import UTMMedium, add_utm_params
from buildnotifier.models.build import Build
from buildnotifier.models.config import NotifierConfig
from buildnotifier.models.delivery import DeliveryOutcome
from buildnotifier.observability.metrics import NOTIFICATIONS

logger = get_logger(__name__)


def _delivery_url(config: NotifierConfig) -> str:
    delivery = config.spec.notification.delivery
    url = delivery.get("url")
    if not isinstance(url, str) or not url:
        raise ConfigurationError(
            f"Expected delivery config {delivery!r} to have string field `url`"
        )
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigurationError(f"Invalid delivery url {url!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(f"Delivery url must be an absolute http(s) URL, got {url!r}")
    return url


class HTTPNotifier:
    """Sends a rendered message to one webhook for every matching build.

    Everything held by an instance is fixed at construction, so a single
    notifier can handle concurrent events.
    """

    def __init__(
        self,
        predicate: Predicate,
        template: CompiledTemplate,
        resolver: BindingResolver,
        url: str,
        client: WebhookClient,
        name: str = "",
    ):
        self._predicate = predicate
        self._template = template
        self._resolver = resolver
        self._url = url
        self._client = client
        self.name = name

    @property
    def url(self) -> str:
        return self._url

    @classmethod
    def setup(
        cls,
        config: NotifierConfig,
        template_source: str,
        secret_getter: SecretGetter | None = None,
        resolver: BindingResolver | None = None,
        client: WebhookClient | None = None,
    ) -> "HTTPNotifier":
        """Build a notifier from its configuration.

        Args:
            config: Notifier configuration
            template_source: Message template source
            secret_getter: Secret source for $(secrets.*) parameters
            resolver: Binding resolver; built from the config params when omitted
            client: Webhook client; a default one is created when omitted

        Returns:
            Ready notifier

        Raises:
            FilterCompileError: If the filter expression is invalid
            ConfigurationError: If the delivery url is missing or invalid
            TemplateParseError: If the template cannot be parsed
        """
        notification = config.spec.notification
        predicate = compile_predicate(notification.filter)
        url = _delivery_url(config)
        template = compile_template(template_source)

        if resolver is None:
            resolver = ParamBindingResolver(
                params=notification.params,
                secrets=config.spec.secrets,
                secret_getter=secret_getter,
            )

        notifier = cls(
            predicate=predicate,
            template=template,
            resolver=resolver,
            url=url,
            client=client or WebhookClient(),
            name=config.metadata.name,
        )
        logger.info(
            "Notifier ready",
            notifier=notifier.name,
            filter=predicate.expression,
            url=url,
        )
        return notifier

    async def handle(self, build: Build, timeout: float | None = None) -> DeliveryOutcome | None:
        """Notify about one build event.

        Args:
            build: Build event; never modified
            timeout: Optional deadline in seconds for the webhook request

        Returns:
            Delivery outcome, or None when the filter did not match

        Raises:
            NotifierError: If bindings, annotation, rendering or transport fail
        """
        if not self._predicate.apply(build):
            logger.debug(
                "Not sending HTTP request for event",
                build_id=build.id,
                status=build.status.value,
            )
            NOTIFICATIONS.labels(result="filtered").inc()
            return None

        logger.info(
            "Sending HTTP request for event",
            build_id=build.id,
            status=build.status.value,
        )

        try:
            outcome = await self._notify(build, timeout)
        except NotifierError as e:
            if e.build_id is None:
                e.build_id = build.id
            logger.error(
                "Failed to send notification",
                build_id=build.id,
                stage=e.stage,
                error=e.message,
            )
            NOTIFICATIONS.labels(result="failed").inc()
            raise

        NOTIFICATIONS.labels(result="delivered" if outcome.ok else "non_ok").inc()
        return outcome

    async def _notify(self, build: Build, timeout: float | None) -> DeliveryOutcome:
        try:
            bindings = await self._resolver.resolve(None, build)
        except BindingResolutionError:
            raise
        except Exception as e:
            raise BindingResolutionError(
                f"Failed to resolve bindings: {e}",
                build_id=build.id,
            ) from e

        log_url = add_utm_params(build.log_url, UTMMedium.HTTP)
        annotated = build.model_copy(update={"log_url": log_url})

        view = {"build": annotated.to_view(), "params": bindings}
        message = self._template.render(view, build_id=build.id)

        return await self._client.deliver(
            self._url,
            message,
            timeout=timeout,
            build_id=build.id,
        )

    async def close(self) -> None:
        """Release the webhook client."""
        await self._client.close()
