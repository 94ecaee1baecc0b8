"""Test document parser.

Persisted tests are JSON documents. JSON is read through a YAML loader,
so hand-written YAML documents with the same structure are accepted as
well. Syntax errors and documents rejected by the scenario model are
reported as `PlanSchemaError` with the location of the problem.
"""

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError
from yaml import SafeLoader, load
from yaml.error import MarkedYAMLError

from apiplan.errors import PlanError, PlanSchemaError
from apiplan.schema import ApiTest, Environment

if TYPE_CHECKING:
    from io import TextIOBase

    from yaml import BaseLoader

_environments_adapter = TypeAdapter(list[Environment])


class DocumentParser:
    """Reader of test documents and environment collections."""

    def __init__(self, loader: type['BaseLoader'] = SafeLoader) -> None:
        """Initialize the parser.

        Args:
            loader: YAML loader class used to read documents.
        """
        self.loader = loader

    def read(self, content: 'TextIOBase | str', *,
             filename: str | None = None) -> Any:  # noqa: ANN401
        """Read raw document data.

        Args:
            content: Document text or a file-like object.
            filename: Optional name of the source file for messages.

        Returns:
            The decoded document data.

        Raises:
            PlanSchemaError: If the document text is malformed.
        """
        try:
            return load(content, Loader=self.loader)  # noqa: S506

        except MarkedYAMLError as base:
            raise PlanSchemaError.from_yaml_error(base, filename=filename) from base

        except PlanError:
            raise

        except Exception as base:
            raise PlanSchemaError('Unexpected error') from base

    def parse(self, content: 'TextIOBase | str', *,
              filename: str | None = None) -> ApiTest:
        """Parse a test document.

        Args:
            content: Document text or a file-like object.
            filename: Optional name of the source file for messages.

        Returns:
            The test described by the document.

        Raises:
            PlanSchemaError: If the document is malformed or is not a
                test description.
        """
        data = self.read(content, filename=filename)
        if data is not None and not isinstance(data, Mapping):
            raise PlanSchemaError('Test document must be a mapping')

        try:
            return ApiTest.model_validate(data)

        except ValidationError as base:
            raise PlanSchemaError.from_pydantic_error(
                base,
                data=data,
                filename=filename,
            ) from base

    def parse_environments(self, content: 'TextIOBase | str', *,
                           filename: str | None = None) -> dict[str, Environment]:
        """Parse a collection of environments keyed by identifier.

        The collection is either a list of environment records carrying
        an `id`, or a mapping of identifiers to records.

        Args:
            content: Document text or a file-like object.
            filename: Optional name of the source file for messages.

        Returns:
            Environments by identifier.

        Raises:
            PlanSchemaError: If the document is malformed.
        """
        data = self.read(content, filename=filename)
        if data is None:
            return {}

        if isinstance(data, Mapping):
            data = [
                {**record, 'id': key} if isinstance(record, Mapping) else record
                for key, record in data.items()
            ]

        if not isinstance(data, list):
            raise PlanSchemaError('Environments document must be a list or a mapping')

        try:
            environments = _environments_adapter.validate_python(data)

        except ValidationError as base:
            raise PlanSchemaError.from_pydantic_error(
                base,
                data=dict(enumerate(data)),
                filename=filename,
            ) from base

        return {
            environment.id: environment
            for environment in environments
            if environment.id
        }

    def load(self, path: Path | str) -> ApiTest:
        """Read and parse a test document file.

        Args:
            path: Path of the document.

        Returns:
            The test described by the document.

        Raises:
            PlanSchemaError: If the document is malformed.
        """
        path = Path(path)
        with path.open('rt', encoding='utf-8') as content:
            return self.parse(content, filename=path.as_posix())

    def load_environments(self, path: Path | str) -> dict[str, Environment]:
        """Read and parse an environments file."""
        path = Path(path)
        with path.open('rt', encoding='utf-8') as content:
            return self.parse_environments(content, filename=path.as_posix())
