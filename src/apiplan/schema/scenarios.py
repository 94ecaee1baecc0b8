"""Scenario aggregate.

A scenario is an ordered list of requests executed by one virtual user,
with scenario-scoped variables and headers, the Dubbo connection
settings shared by its RPC requests, and an optional reference to an
environment.
"""

from pydantic import Field

from apiplan.models import ConfigModel, ValidationResult
from apiplan.names import Text

from .environments import Environment
from .requests import HttpRequest, Request
from .values import DubboConfig, KeyValue


class Scenario(ConfigModel):
    """Ordered requests sharing variables, headers and connection settings."""

    name: Text = None
    url: Text = None

    variables: list[KeyValue] = Field(default_factory=list)
    headers: list[KeyValue] = Field(default_factory=list)

    requests: list[Request] = Field(
        default_factory=lambda: [HttpRequest()],
        title='Requests',
        description='Requests of the scenario, in execution order.',
    )

    environment_id: Text = Field(
        default=None,
        title='Environment identifier',
    )
    environment: Environment | None = Field(
        default=None,
        title='Resolved environment',
        description='Environment record supplied by the environment store.',
    )

    dubbo_config: DubboConfig = Field(default_factory=DubboConfig)

    def is_valid(self) -> ValidationResult:  # type: ignore[override]
        """Validate requests in order and return the first failure."""
        for index, request in enumerate(self.requests):
            if not (result := request.is_valid(self.environment_id)):
                return result.locate('requests', index)

        return ValidationResult.success()
