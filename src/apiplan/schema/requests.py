"""Request variants of a scenario.

A request is either an HTTP request or a Dubbo RPC request. Both share
a common contract (kind tag, display method, validation) and carry
their protocol-specific fields. The variant is selected once, at
construction time, from the `type` discriminator of the field bag; a
missing or unknown discriminator selects HTTP.
"""

from collections.abc import Mapping
from typing import Annotated, Any, ClassVar

from pydantic import Discriminator, Field, Tag, TypeAdapter, computed_field, field_validator

from apiplan.messages import Message
from apiplan.models import ConfigModel, ValidationResult
from apiplan.names import DubboProtocol, RequestType, Text
from apiplan.urls import ensure_scheme, is_absolute_url

from .checks import Assertions
from .environments import Environment
from .extractors import Extract
from .values import Body, ConfigCenter, ConsumerAndService, KeyValue, RegistryCenter

DEFAULT_METHOD = 'GET'


class BaseRequest(ConfigModel):
    """Contract shared by all request variants."""

    kind: ClassVar[RequestType]

    name: Text = None

    assertions: Assertions = Field(default_factory=Assertions)
    extract: Extract = Field(default_factory=Extract)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def type(self) -> str:
        """Variant discriminator written into persisted documents."""
        return type(self).kind

    def show_type(self) -> str:
        """Label of the request kind for display."""
        return type(self).kind

    def show_method(self) -> str:
        """Label of the request method for display."""
        return ''

    def is_valid(self, environment_id: str | None = None) -> ValidationResult:  # type: ignore[override]
        """Validate the request.

        Args:
            environment_id: Identifier of the environment configured on
                the owning scenario, if any.

        Returns:
            Validation result of the request.
        """
        return ValidationResult.success()


class HttpRequest(BaseRequest):
    """HTTP request addressed by an absolute URL or by an environment path."""

    kind = RequestType.HTTP

    url: Text = Field(
        default=None,
        title='Request URL',
        description='Absolute URL; the `http://` scheme is assumed when missing.',
    )

    path: Text = Field(
        default=None,
        title='Request path',
        description='Path appended to the scenario environment address.',
    )

    method: Text = DEFAULT_METHOD

    parameters: list[KeyValue] = Field(default_factory=list)
    headers: list[KeyValue] = Field(default_factory=list)

    body: Body = Field(default_factory=Body)

    use_environment: bool | None = Field(
        default=None,
        title='Address by environment',
        description='Take scheme, domain and port from the scenario environment.',
    )

    environment: Environment | None = None

    @field_validator('method', mode='before')
    @classmethod
    def default_method(cls, value: Any) -> Any:  # noqa: ANN401
        """Fall back to GET for an empty method."""
        return value or DEFAULT_METHOD

    def show_method(self) -> str:
        """HTTP method in upper case."""
        return (self.method or DEFAULT_METHOD).upper()

    def is_valid(self, environment_id: str | None = None) -> ValidationResult:  # type: ignore[override]
        """Validate request addressing.

        Requests addressed by environment need an environment on the
        scenario and a path. Other requests need a URL that is a usable
        absolute URL once the default scheme is applied.

        Args:
            environment_id: Identifier of the environment configured on
                the owning scenario, if any.

        Returns:
            Validation result of the request.
        """
        if self.use_environment:
            if not environment_id:
                return ValidationResult.failure(Message.CONFIGURE_ENVIRONMENT)
            if not self.path:
                return ValidationResult.failure(Message.INPUT_PATH)
            return ValidationResult.success()

        if not self.url:
            return ValidationResult.failure(Message.INPUT_URL)

        if not is_absolute_url(ensure_scheme(self.url)):
            return ValidationResult.failure(Message.URL_INVALID)

        return ValidationResult.success()


class DubboRequest(BaseRequest):
    """Dubbo RPC call of an interface method."""

    kind = RequestType.DUBBO

    protocol: Text = Field(
        default=DubboProtocol.DUBBO,
        title='RPC protocol',
        description='Protocol scheme, `dubbo://` or `rmi://`.',
    )

    interface: Text = None
    method: Text = None

    config_center: ConfigCenter = Field(default_factory=ConfigCenter)
    registry_center: RegistryCenter = Field(default_factory=RegistryCenter)
    consumer_and_service: ConsumerAndService = Field(default_factory=ConsumerAndService)

    args: list[KeyValue] = Field(
        default_factory=list,
        title='Method arguments',
        description='Argument types as names and argument values as values.',
    )
    attachment_args: list[KeyValue] = Field(default_factory=list)

    @field_validator('protocol', mode='before')
    @classmethod
    def default_protocol(cls, value: Any) -> Any:  # noqa: ANN401
        """Fall back to `dubbo://` for an empty protocol."""
        return value or DubboProtocol.DUBBO.value

    def show_type(self) -> str:
        """RPC requests are displayed as `RPC`."""
        return 'RPC'

    def show_method(self) -> str:
        """Protocol name in upper case, for example `DUBBO` for `dubbo://`."""
        return (self.protocol or DubboProtocol.DUBBO).removesuffix('://').upper()

    def is_valid(self, environment_id: str | None = None) -> ValidationResult:  # type: ignore[override]  # noqa: ARG002
        """Validate the call target and connection records, in order."""
        if not self.interface:
            return ValidationResult.failure(Message.DUBBO_INPUT_INTERFACE)

        if not self.method:
            return ValidationResult.failure(Message.DUBBO_INPUT_METHOD)

        if not self.config_center.is_valid():
            return ValidationResult.failure(Message.DUBBO_INPUT_CONFIG_CENTER)

        if not self.registry_center.is_valid():
            return ValidationResult.failure(Message.DUBBO_INPUT_REGISTRY_CENTER)

        if not self.consumer_and_service.is_valid():
            return ValidationResult.failure(Message.DUBBO_INPUT_CONSUMER_SERVICE)

        return ValidationResult.success()


def request_tag(value: Any) -> str:  # noqa: ANN401
    """Select the request variant of a field bag or a request record.

    Args:
        value: Raw field bag or an already built request.

    Returns:
        `DUBBO` for Dubbo requests, `HTTP` for anything else.
    """
    if isinstance(value, Mapping):
        kind = value.get('type')
    else:
        kind = getattr(value, 'type', None)

    if kind == RequestType.DUBBO:
        return RequestType.DUBBO.value

    return RequestType.HTTP.value


#: Any request variant, dispatched on the `type` discriminator.
Request = Annotated[
    Annotated[HttpRequest, Tag(RequestType.HTTP.value)]
    | Annotated[DubboRequest, Tag(RequestType.DUBBO.value)],
    Discriminator(request_tag),
]

_request_adapter: TypeAdapter[HttpRequest | DubboRequest] = TypeAdapter(Request)


def make_request(options: Mapping[str, Any] | None = None) -> HttpRequest | DubboRequest:
    """Build a request variant from a partial field bag.

    Args:
        options: Field bag with an optional `type` discriminator.

    Returns:
        An HTTP request unless `type` is `DUBBO`.
    """
    return _request_adapter.validate_python(options or {})
