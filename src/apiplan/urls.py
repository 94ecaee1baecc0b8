"""URL helpers for HTTP request addressing.

Request URLs are typed by hand in an editor and frequently omit the
scheme. These helpers normalize such URLs, check that they are usable
absolute URLs, split them into the parts an HTTP sampler is addressed
by, and build percent-encoded query strings.
"""

from typing import TYPE_CHECKING, NamedTuple
from urllib.parse import quote, unquote, urlsplit

if TYPE_CHECKING:
    from collections.abc import Iterable

HTTP_SCHEMES = ('http://', 'https://')
DEFAULT_SCHEME = 'http'
DEFAULT_PORTS = {
    'http': 80,
    'https': 443,
}

#: Characters `encodeURIComponent` leaves untouched besides
#: letters, digits and `-_.~`, which `quote` always keeps.
COMPONENT_SAFE = "!*'()"


class Address(NamedTuple):
    """Parts of an absolute URL an HTTP sampler is addressed by."""

    hostname: str
    port: str
    scheme: str
    path: str


def ensure_scheme(url: str) -> str:
    """Prefix a URL with `http://` unless it starts with an HTTP scheme."""
    if url.startswith(HTTP_SCHEMES):
        return url

    return f'{DEFAULT_SCHEME}://{url}'


def is_absolute_url(url: str) -> bool:
    """Check that a URL has a scheme, a host and a well-formed port.

    Args:
        url: URL to check.

    Returns:
        True if the URL can address a request.
    """
    try:
        parts = urlsplit(url)
        parts.port  # noqa: B018
    except ValueError:
        return False

    if not parts.scheme or not parts.hostname:
        return False

    return not any(char.isspace() for char in parts.netloc)


def split_url(url: str) -> Address:
    """Split an absolute URL into sampler address parts.

    The hostname and path are percent-decoded, an empty path becomes
    `/`, and the port is empty when it is the default of the scheme.
    The query string and the fragment of the URL are not part of the
    address.

    Args:
        url: Absolute URL.

    Returns:
        Address parts of the URL.

    Raises:
        ValueError: If the port of the URL is malformed.
    """
    parts = urlsplit(url)

    port = ''
    if parts.port is not None and parts.port != DEFAULT_PORTS.get(parts.scheme):
        port = str(parts.port)

    return Address(
        hostname=unquote(parts.hostname or ''),
        port=port,
        scheme=parts.scheme,
        path=unquote(parts.path or '/'),
    )


def encode_component(value: str) -> str:
    """Percent-encode a query string component."""
    return quote(value, safe=COMPONENT_SAFE)


def build_query(pairs: 'Iterable[tuple[str, str]]') -> str:
    """Build a query string from name/value pairs, in order.

    Args:
        pairs: Names and values to encode.

    Returns:
        Encoded pairs joined by `&`, without a leading `?`.
    """
    return '&'.join(
        f'{encode_component(name)}={encode_component(value)}'
        for name, value in pairs
    )
