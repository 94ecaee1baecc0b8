"""Base Pydantic models for scenario records.

This module defines the foundational model classes used by every record
of the scenario model, the uniform validation result, and the base class
for runtime settings.

Records are deliberately tolerant: they are built from partial field
bags produced by an editor or read back from persisted documents, so
unknown keys are ignored and absent fields keep their defaults.
"""

from collections.abc import Iterable, Mapping
from typing import Any, Self, get_origin

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationInfo, field_validator, model_validator
from pydantic.alias_generators import to_camel
from pydantic_settings import BaseSettings, SettingsConfigDict

#: A single step of a validation path: a field alias or a list index.
type PathItem = str | int


class ConfigModel(BaseModel):
    """Base mutable record of the scenario model.

    Design principles enforced by this model:
        - Tolerant construction: a record can be built from an empty,
          partial, or `None` field bag. Unknown keys are ignored and a
          `null` collection or nested record means "absent".
        - Persisted naming: fields are read and written under their
          camelCase aliases, Python names are accepted as well.
        - Explicit merge contract: `update` overwrites scalar and record
          fields but never replaces a collection, collections only grow
          through the typed `extend` path.

    All scenario records must inherit from this class.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        validate_by_alias=True,
        validate_by_name=True,
        validate_assignment=True,
        extra='ignore',
    )

    @model_validator(mode='before')
    @classmethod
    def ensure_options(cls, data: Any) -> Any:  # noqa: ANN401
        """Treat a missing field bag as an empty one."""
        if data is None:
            return {}

        return data

    @field_validator('*', mode='before')
    @classmethod
    def default_absent(cls, value: Any, info: ValidationInfo) -> Any:  # noqa: ANN401
        """Replace `null` collections and nested records with their defaults.

        Args:
            value: Raw field value.
            info: Validation info carrying the field name.

        Returns:
            The declared default for a `null` collection or record field,
            otherwise the value unchanged.
        """
        if value is not None or info.field_name is None:
            return value

        field = cls.model_fields[info.field_name]
        if cls._is_collection(field.annotation) or cls._is_record(field.annotation):
            return field.get_default(call_default_factory=True)

        return value

    @staticmethod
    def _is_collection(annotation: Any) -> bool:  # noqa: ANN401
        return get_origin(annotation) is list

    @staticmethod
    def _is_record(annotation: Any) -> bool:  # noqa: ANN401
        return isinstance(annotation, type) and issubclass(annotation, ConfigModel)

    @classmethod
    def resolve_field(cls, key: str) -> str | None:
        """Resolve a field name from a Python name or a persisted alias.

        Args:
            key: Field name or alias.

        Returns:
            The Python field name, or `None` for unknown keys.
        """
        if key in cls.model_fields:
            return key

        for name, field in cls.model_fields.items():
            if field.alias == key:
                return name

        return None

    def update(self, options: Mapping[str, Any] | None = None) -> Self:
        """Overwrite fields present in a partial field bag.

        Collections are never replaced; use `extend` to add items.

        Args:
            options: Partial field bag keyed by field names or aliases.

        Returns:
            The updated record.
        """
        for key, value in (options or {}).items():
            name = self.resolve_field(key)
            if name is None or isinstance(getattr(self, name), list):
                continue
            setattr(self, name, value)

        return self

    def extend(self, field: str, items: Iterable[Any]) -> Self:
        """Append validated items to a collection field.

        Args:
            field: Collection field name or alias.
            items: Raw items or records to append.

        Returns:
            The updated record.

        Raises:
            KeyError: If the record has no such collection field.
            pydantic.ValidationError: If an item can not be validated.
        """
        name = self.resolve_field(field)
        if name is None or not isinstance(collection := getattr(self, name), list):
            raise KeyError(f'{type(self).__name__} has no collection {field!r}')

        adapter = TypeAdapter(type(self).model_fields[name].annotation)
        collection.extend(adapter.validate_python(list(items)))

        return self

    def is_valid(self) -> bool:
        """Check record completeness. Records are valid unless overridden."""
        return True

    def clone(self) -> Self:
        """Return an independent deep copy of the record."""
        return self.model_copy(deep=True)


class ValidationResult(BaseModel):
    """Outcome of validating a model entity.

    A result is truthy when the entity is valid. A failure carries the
    message-catalog code describing the problem and the path of the
    failing entity from the validated root, for example
    `('scenarioDefinition', 0, 'requests', 2)`.
    """

    model_config = ConfigDict(frozen=True)

    is_valid: bool = Field(
        serialization_alias='isValid',
        title='Validity flag',
    )

    info: str | None = Field(
        default=None,
        title='Message code',
        description='Message-catalog key describing the first failure.',
    )

    path: tuple[PathItem, ...] = Field(
        default=(),
        title='Failure path',
        description='Location of the failing entity from the validated root.',
    )

    def __bool__(self) -> bool:
        """Truthiness of a validation result."""
        return self.is_valid

    @classmethod
    def success(cls) -> Self:
        """Create a successful result."""
        return cls(is_valid=True)

    @classmethod
    def failure(cls, info: str, *path: PathItem) -> Self:
        """Create a failed result.

        Args:
            info: Message-catalog code.
            path: Optional location of the failing entity.

        Returns:
            A failed validation result.
        """
        return cls(is_valid=False, info=info, path=path)

    def locate(self, *path: PathItem) -> Self:
        """Prefix the failure path with the location of a child entity.

        Args:
            path: Location of the child inside its container.

        Returns:
            The result itself when valid, otherwise a relocated copy.
        """
        if self.is_valid:
            return self

        return self.model_copy(update={'path': (*path, *self.path)})


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings cannot be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored,
          so unrelated environment variables never break resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
