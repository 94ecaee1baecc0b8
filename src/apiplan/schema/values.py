"""Small value records shared by requests and scenarios.

Defines key/value pairs, HTTP request bodies, and the Dubbo connection
records (config center, registry center, consumer and service tuning)
together with their completeness rules.
"""

from pydantic import Field

from apiplan.models import ConfigModel
from apiplan.names import (
    ASYNC_OPTIONS,
    CONFIG_CENTER_PROTOCOLS,
    LOAD_BALANCE_OPTIONS,
    REGISTRY_CENTER_PROTOCOLS,
    BodyType,
    Text,
)


class KeyValue(ConfigModel):
    """Named value used for variables, headers, parameters and arguments."""

    name: Text = None
    value: Text = None

    def is_valid(self) -> bool:
        """A pair is valid when either its name or its value is set."""
        return bool(self.name) or bool(self.value)


class Body(ConfigModel):
    """HTTP request body.

    A body is either a list of key/value pairs or a raw text payload
    with a declared format.
    """

    type: Text = Field(
        default=None,
        title='Body type',
        description='One of `KeyValue`, `Form Data` or `Raw`.',
    )

    format: Text = Field(
        default=None,
        title='Raw body format',
        description='One of `text`, `json`, `xml` or `html`.',
    )

    raw: Text = None

    kvs: list[KeyValue] = Field(default_factory=list)

    def is_kv(self) -> bool:
        """Check whether the body is made of key/value pairs."""
        return self.type == BodyType.KV

    def is_valid(self) -> bool:
        """A body is valid when it carries a valid pair or a raw payload."""
        if self.is_kv():
            return any(kv.is_valid() for kv in self.kvs)

        return bool(self.raw)


class PresenceMixin(ConfigModel):
    """Completeness rule of Dubbo connection records.

    The check is a presence test only: a record is usable as soon as any
    of its fields is set.
    """

    def is_valid(self) -> bool:
        """Check that at least one field is set."""
        return any(getattr(self, name) for name in type(self).model_fields)


class ConfigCenter(PresenceMixin):
    """Dubbo configuration center settings."""

    protocol: Text = Field(
        default=None,
        title='Config center protocol',
        examples=list(CONFIG_CENTER_PROTOCOLS),
    )

    group: Text = None
    namespace: Text = None
    username: Text = None
    address: Text = None
    password: Text = None
    timeout: Text = None


class RegistryCenter(PresenceMixin):
    """Dubbo service registry settings."""

    protocol: Text = Field(
        default=None,
        title='Registry protocol',
        examples=list(REGISTRY_CENTER_PROTOCOLS),
    )

    group: Text = None
    username: Text = None
    address: Text = None
    password: Text = None
    timeout: Text = None


class ConsumerAndService(PresenceMixin):
    """Dubbo consumer call tuning."""

    timeout: Text = '1000'
    version: Text = '1.0'
    retries: Text = '0'
    cluster: Text = 'failfast'
    group: Text = None
    connections: Text = '100'
    async_: Text = Field(
        default='sync',
        alias='async',
        title='Invocation mode',
        examples=list(ASYNC_OPTIONS),
    )

    load_balance: Text = Field(
        default='random',
        title='Load balancing strategy',
        examples=list(LOAD_BALANCE_OPTIONS),
    )

    @classmethod
    def unset(cls) -> 'ConsumerAndService':
        """Create a record with every field unset, ignoring the defaults."""
        return cls.model_validate(dict.fromkeys(cls.model_fields))


class DubboConfig(ConfigModel):
    """Dubbo connection settings shared by all requests of a scenario.

    Unlike request-level settings, scenario-level consumer settings carry
    no defaults, so that request defaults are never overridden by them.
    """

    config_center: ConfigCenter = Field(default_factory=ConfigCenter)
    registry_center: RegistryCenter = Field(default_factory=RegistryCenter)
    consumer_and_service: ConsumerAndService = Field(default_factory=ConsumerAndService.unset)
