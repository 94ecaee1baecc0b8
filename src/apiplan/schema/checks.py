"""Response assertion records.

Assertions are post-response checks attached to a request. Text
assertions are kept for editing only; regex and duration assertions are
compiled into the test plan.
"""

from typing import ClassVar

from pydantic import Field, computed_field

from apiplan.models import ConfigModel
from apiplan.names import AssertionType, Text


class BaseAssertion(ConfigModel):
    """Assertion tagged with its kind."""

    kind: ClassVar[AssertionType]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def type(self) -> str:
        """Kind tag written into persisted documents."""
        return type(self).kind


class TextAssertion(BaseAssertion):
    """Plain text check of a response subject."""

    kind = AssertionType.TEXT

    subject: Text = None
    condition: Text = None
    value: Text = None


class RegexAssertion(BaseAssertion):
    """Pattern check of a response subject."""

    kind = AssertionType.REGEX

    subject: Text = Field(
        default=None,
        title='Response subject',
        description='One of `Response Code`, `Response Headers` or `Response Data`.',
    )

    expression: Text = None
    description: Text = None

    def is_valid(self) -> bool:
        """A regex assertion needs both a subject and an expression."""
        return bool(self.subject) and bool(self.expression)


class DurationAssertion(BaseAssertion):
    """Maximum response time check in milliseconds."""

    kind = AssertionType.DURATION

    value: Text = None

    def is_valid(self) -> bool:
        """A duration assertion is active once a value is set."""
        return bool(self.value)


class Assertions(ConfigModel):
    """All assertions of a single request."""

    text: list[TextAssertion] = Field(default_factory=list)
    regex: list[RegexAssertion] = Field(default_factory=list)
    duration: DurationAssertion = Field(default_factory=DurationAssertion)
