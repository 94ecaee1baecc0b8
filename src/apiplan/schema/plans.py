"""Root test aggregate.

An API test owns its scenarios, carries its identity and project
association, validates the whole model tree, and exports itself either
as a persisted JSON document or as a compiled JMeter test plan.
"""

from json import dumps
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from pydantic import Field

from apiplan.messages import Message
from apiplan.models import ConfigModel, ValidationResult
from apiplan.names import Text

from .scenarios import Scenario

if TYPE_CHECKING:
    from collections.abc import Mapping

    from apiplan.jmx import JMXDocument
    from apiplan.settings import CompilerSettings

    from .environments import Environment

TEST_TYPE = 'MS API CONFIG'
TEST_VERSION = '1.1.0'


def _make_id() -> str:
    return str(uuid4())


class ApiTest(ConfigModel):
    """API test: identity, project association and ordered scenarios."""

    type: Text = TEST_TYPE
    version: Text = TEST_VERSION

    id: Text = Field(
        default_factory=_make_id,
        title='Test identifier',
    )
    name: Text = None
    project_id: Text = None

    scenario_definition: list[Scenario] = Field(
        default_factory=lambda: [Scenario()],
        title='Scenarios',
    )

    schedule: dict[str, Any] | None = Field(default_factory=dict)

    def is_valid(self) -> ValidationResult:  # type: ignore[override]
        """Validate the test.

        Scenario and request failures take priority over failures of the
        test's own fields.

        Returns:
            Validation result with the first failure, if any.
        """
        for index, scenario in enumerate(self.scenario_definition):
            if not (result := scenario.is_valid()):
                return result.locate('scenarioDefinition', index)

        if not self.project_id:
            return ValidationResult.failure(Message.SELECT_PROJECT)

        if not self.name:
            return ValidationResult.failure(Message.INPUT_NAME)

        return ValidationResult.success()

    def export(self) -> str:
        """Serialize scenarios into the transport JSON document.

        Identity, project and schedule are not part of the export; unset
        fields are omitted.

        Returns:
            Compact JSON text `{type, version, scenarios}`.
        """
        document = {
            'type': self.type,
            'version': self.version,
            'scenarios': [
                scenario.model_dump(mode='json', by_alias=True, exclude_none=True)
                for scenario in self.scenario_definition
            ],
        }

        return dumps(document, ensure_ascii=False, separators=(',', ':'))

    def to_jmx(self, environments: 'Mapping[str, Environment] | None' = None,
               settings: 'CompilerSettings | None' = None) -> 'JMXDocument | None':
        """Compile the test into a JMeter test plan.

        Args:
            environments: Environments by identifier, used for scenarios
                that reference an environment without embedding it.
            settings: Compiler settings, resolved from the process
                environment when omitted.

        Returns:
            The named document, or None if the test has no identity or name.
        """
        from apiplan.jmx import JMXGenerator  # noqa: PLC0415

        return JMXGenerator(environments=environments, settings=settings).compile(self)
