"""Strict record schemas.

Every record leaving a connector transform is validated here before it
can reach an output table. Schemas reject unknown fields and missing
required fields; field types apply the coercions from
``validation.field_parsers``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, ValidationError

from core.errors import HarvestValidationError
from core.types import RecordSet, ValidatedRecordSet


class RecordSchema(BaseModel):
    """Base class for dataset record schemas."""

    model_config = ConfigDict(extra="forbid", frozen=True)


def validate_record_set(record_set: RecordSet) -> ValidatedRecordSet:
    """Validate every row of a record set against its schema.

    Args:
        record_set: Raw rows produced by a connector transform.

    Returns:
        Validated records with resolved column order.

    Raises:
        HarvestValidationError: If the schema is not strict, a row fails
            validation, or the explicit field order does not match.
    """
    schema = record_set.schema
    if schema.model_config.get("extra") != "forbid":
        raise HarvestValidationError(
            f"Schema {schema.__name__} for dataset '{record_set.dataset}' must forbid "
            "extra fields. Subclass RecordSchema."
        )
    records = []
    for index, row in enumerate(record_set.rows):
        try:
            model = schema.model_validate(dict(row))
        except ValidationError as error:
            raise HarvestValidationError(
                f"Record #{index + 1} of dataset '{record_set.dataset}' failed "
                f"{schema.__name__} validation: {error}"
            ) from error
        records.append(model.model_dump())
    fields = _resolve_fields(record_set)
    return ValidatedRecordSet(dataset=record_set.dataset, records=tuple(records), fields=fields)


def validate_record_sets(record_sets: list[RecordSet]) -> list[ValidatedRecordSet]:
    """Validate all record sets; nothing is returned unless all pass."""
    return [validate_record_set(record_set) for record_set in record_sets]


def _resolve_fields(record_set: RecordSet) -> tuple[str, ...]:
    schema_fields = tuple(record_set.schema.model_fields)
    if record_set.fields is None:
        return schema_fields
    if sorted(record_set.fields) != sorted(schema_fields):
        raise HarvestValidationError(
            f"Field order for dataset '{record_set.dataset}' must list exactly the "
            f"schema fields {schema_fields}, got {record_set.fields}."
        )
    return record_set.fields
