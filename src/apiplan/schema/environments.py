"""Environment record consumed at compile time.

Environments are stored and managed elsewhere; a scenario only refers to
one by identifier. At compile time the environment contributes its
connection defaults (scheme, domain, port) and its published variables
and headers.

Environment payloads are normalized here: variables and headers may
arrive as lists or as JSON-encoded strings. A string that can not be
decoded into a list is treated as "no data" and reported with an
`EnvironmentWarning`.
"""

from json import JSONDecodeError, loads
from typing import Any
from warnings import warn

from pydantic import Field, field_validator

from apiplan.errors import EnvironmentWarning
from apiplan.models import ConfigModel
from apiplan.names import Text

from .values import KeyValue


class Environment(ConfigModel):
    """Connection defaults, variables and headers shared by scenarios."""

    id: Text = None
    name: Text = None

    protocol: Text = Field(
        default=None,
        title='Scheme',
        description='Scheme of requests addressed by path, for example `https`.',
    )
    domain: Text = None
    port: Text = None

    variables: list[KeyValue] = Field(default_factory=list)
    headers: list[KeyValue] = Field(default_factory=list)

    @field_validator('variables', 'headers', mode='before')
    @classmethod
    def decode_payload(cls, value: Any) -> Any:  # noqa: ANN401
        """Decode key/value lists published as JSON strings.

        Args:
            value: Raw variables or headers payload.

        Returns:
            The decoded list of mappings, an empty list for unusable
            strings, or the value unchanged when it is not a string.
        """
        if not isinstance(value, str):
            return value

        if not value.strip():
            return []

        try:
            items = loads(value)
        except JSONDecodeError:
            warn('Environment payload is not valid JSON, ignored',
                 category=EnvironmentWarning, stacklevel=2)
            return []

        if items is None:
            return []

        if not isinstance(items, list):
            warn('Environment payload is not a list, ignored',
                 category=EnvironmentWarning, stacklevel=2)
            return []

        return [item for item in items if isinstance(item, dict)]
