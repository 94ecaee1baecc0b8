"""Response value extractor records.

An extractor pulls a value out of a response into a named variable that
later requests of the scenario may reference as `${variable}`.
"""

from typing import ClassVar

from pydantic import Field, computed_field

from apiplan.models import ConfigModel
from apiplan.names import ExtractType, Text


class BaseExtractor(ConfigModel):
    """Fields shared by every extractor kind."""

    kind: ClassVar[ExtractType]

    variable: Text = Field(
        default=None,
        title='Destination variable',
    )

    use_headers: bool | None = Field(
        default=None,
        title='Extract from headers',
        description='Apply the expression to response headers instead of the body.',
    )

    value: Text = Field(
        default='',
        title='Variable reference',
        description='Reference to the extracted variable, for example `${token}`.',
    )

    expression: Text = None
    description: Text = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def type(self) -> str:
        """Kind tag written into persisted documents."""
        return type(self).kind

    def is_valid(self) -> bool:
        """An extractor needs a destination variable and an expression."""
        return bool(self.variable) and bool(self.expression)


class RegexExtractor(BaseExtractor):
    """Regular expression extractor."""

    kind = ExtractType.REGEX


class JSONPathExtractor(BaseExtractor):
    """JSONPath extractor."""

    kind = ExtractType.JSON_PATH


class XPathExtractor(BaseExtractor):
    """XPath extractor."""

    kind = ExtractType.XPATH


class Extract(ConfigModel):
    """All extractors of a single request, grouped by kind."""

    regex: list[RegexExtractor] = Field(default_factory=list)
    json_path: list[JSONPathExtractor] = Field(default_factory=list, alias='json')
    xpath: list[XPathExtractor] = Field(default_factory=list)
