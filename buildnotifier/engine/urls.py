"""UTM annotation of build log links."""

from enum import Enum

import httpx

from buildnotifier.core.exceptions import URLMalformedError

UTM_CAMPAIGN = "google-cloud-build-notifiers"
UTM_SOURCE = "google-cloud-build"


class UTMMedium(str, Enum):
    """Delivery medium reported in utm_medium."""

    HTTP = "http"
    EMAIL = "email"
    CHAT = "chat"
    OTHER = "other"


def add_utm_params(raw_url: str, medium: UTMMedium | str) -> str:
    """Add UTM tracking parameters to a link.

    An empty URL is returned unchanged since there is no link to annotate.
    Relative references are annotated like absolute ones. Existing
    ``utm_campaign``, ``utm_medium`` and ``utm_source`` values are replaced
    rather than appended, so annotating twice gives the same URL.

    Args:
        raw_url: Link to annotate
        medium: Value for ``utm_medium``

    Returns:
        Annotated URL

    Raises:
        URLMalformedError: If the URL cannot be parsed
    """
    if not raw_url:
        return raw_url

    try:
        url = httpx.URL(raw_url)
    except (httpx.InvalidURL, TypeError) as e:
        raise URLMalformedError(f"Failed to parse URL {raw_url!r}: {e}") from e

    medium_value = medium.value if isinstance(medium, UTMMedium) else medium
    url = url.copy_set_param("utm_campaign", UTM_CAMPAIGN)
    url = url.copy_set_param("utm_medium", medium_value)
    url = url.copy_set_param("utm_source", UTM_SOURCE)
    return str(url)
