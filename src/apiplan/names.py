"""Primitive field types and enumerations of the scenario model.

This module defines the textual field type shared by every record and
the closed sets of tags (body types, assertion kinds, extractor kinds,
request types and RPC protocols) relied upon by the models and by the
document compiler.
"""

from enum import StrEnum
from typing import Annotated, Any

from pydantic import ValidatorFunctionWrapHandler, WrapValidator


class FalsyText(str):
    """Text of a persisted `0` or `false`.

    The text is written out unchanged, but the value counts as unset in
    presence checks and inheritance, like an empty string.
    """

    __slots__ = ()

    def __bool__(self) -> bool:
        return False


def _as_text(value: Any, handler: ValidatorFunctionWrapHandler) -> Any:  # noqa: ANN401
    """Coerce persisted scalars into text.

    Persisted documents frequently carry numbers (ports, timeouts,
    durations) where the model stores text. Booleans are rendered the
    way the editor writes them. Zero and `false` stay falsy as
    `FalsyText`.

    Args:
        value: Raw field value.
        handler: Inner string validation.

    Returns:
        The validated text, or `None`.
    """
    falsy = isinstance(value, FalsyText) or (isinstance(value, (bool, int, float)) and not value)

    if isinstance(value, bool):
        value = 'true' if value else 'false'
    elif isinstance(value, (int, float)):
        value = str(value)

    text = handler(value)
    if falsy and text is not None:
        return FalsyText(text)

    return text


#: Optional text field. Numbers are accepted and stored as strings,
#: zero and `false` as falsy text.
Text = Annotated[str | None, WrapValidator(_as_text)]


def as_text(value: str | None) -> str:
    """Render an optional text field for output, keeping falsy text."""
    return '' if value is None else value


class RequestType(StrEnum):
    """Discriminator of request variants."""

    HTTP = 'HTTP'
    DUBBO = 'DUBBO'


class DubboProtocol(StrEnum):
    """RPC protocol schemes supported by Dubbo requests."""

    DUBBO = 'dubbo://'
    RMI = 'rmi://'


class BodyType(StrEnum):
    """Kinds of HTTP request bodies."""

    KV = 'KeyValue'
    FORM_DATA = 'Form Data'
    RAW = 'Raw'


class BodyFormat(StrEnum):
    """Declared formats of raw HTTP request bodies."""

    TEXT = 'text'
    JSON = 'json'
    XML = 'xml'
    HTML = 'html'


class AssertionType(StrEnum):
    """Kinds of response assertions."""

    TEXT = 'Text'
    REGEX = 'Regex'
    DURATION = 'Duration'


class RegexSubject(StrEnum):
    """Parts of a response a regex assertion may be applied to."""

    RESPONSE_CODE = 'Response Code'
    RESPONSE_HEADERS = 'Response Headers'
    RESPONSE_DATA = 'Response Data'


class ExtractType(StrEnum):
    """Kinds of response value extractors."""

    REGEX = 'Regex'
    JSON_PATH = 'JSONPath'
    XPATH = 'XPath'


#: Content types injected for declared body formats.
#: Plain text bodies do not get a content type.
CONTENT_TYPES: dict[str, str] = {
    BodyFormat.JSON: 'application/json',
    BodyFormat.HTML: 'text/html',
    BodyFormat.XML: 'text/xml',
}

CONFIG_CENTER_PROTOCOLS = ('zookeeper', 'nacos', 'apollo')
REGISTRY_CENTER_PROTOCOLS = ('none', 'zookeeper', 'nacos', 'apollo', 'multicast', 'redis', 'simple')

ASYNC_OPTIONS = ('sync', 'async')
LOAD_BALANCE_OPTIONS = ('random', 'roundrobin', 'leastactive', 'consistenthash')
