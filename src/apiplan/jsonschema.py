"""JSON Schema of persisted test documents."""

from functools import cache
from json import dumps
from typing import TYPE_CHECKING

from pydantic.json_schema import GenerateJsonSchema, JsonSchemaValue

from apiplan.schema import ApiTest

if TYPE_CHECKING:
    from pydantic_core import core_schema as core


class SchemaGenerator(GenerateJsonSchema):
    """Custom JSON Schema generator for test documents.

    Optional scalar fields are written as a type array
    (`{"type": ["string", "null"]}`) instead of a union of schemas, which
    keeps the schema readable by editors.
    """

    @classmethod
    @cache
    def make_schema(cls, indent: int | str | None = 4) -> str:
        """Generate the JSON Schema for test documents.

        Args:
            indent: Indentation level used for JSON formatting.

        Returns:
            Serialized JSON Schema string.
        """
        schema = {
            **ApiTest.model_json_schema(
                by_alias=True,
                schema_generator=cls,
                mode='validation',
            ),
            'title': 'apiplan',
            'description': 'JSON Schema for API test documents',
            '$schema': cls.schema_dialect,
        }

        return dumps(
            schema,
            ensure_ascii=False,
            sort_keys=True,
            indent=indent,
        )

    def nullable_schema(self, schema: 'core.NullableSchema') -> JsonSchemaValue:
        """Generate JSON Schema for optional values.

        Args:
            schema: Pydantic core schema describing an optional value.

        Returns:
            A type array for optional primitives, otherwise the default
            union of the inner schema and `null`.
        """
        json_schema = super().nullable_schema(schema)

        variants = json_schema.get('anyOf')
        if not isinstance(variants, list) or len(variants) != 2:  # noqa: PLR2004
            return json_schema

        inner, null = variants
        if null != {'type': 'null'} or set(inner) != {'type'} or not isinstance(inner['type'], str):
            return json_schema

        return {
            **{key: value for key, value in json_schema.items() if key != 'anyOf'},
            'type': [inner['type'], 'null'],
        }
