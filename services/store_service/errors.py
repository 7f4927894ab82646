"""Errors raised by store operations.

Every rejected write surfaces as one of these, never as a bare
``IntegrityError`` or pydantic ``ValidationError``, so callers can branch on
the kind of failure:

    StoreError
    ├── NotFound
    ├── ConstraintViolation            (rule "constraint" / "required")
    │   ├── DuplicateKey
    │   ├── ValueOutOfRange
    │   └── InvalidEnumValue
    └── ReferentialIntegrityViolation
        ├── InvalidReference
        └── DeletionBlocked
"""

from typing import Any, Optional

from libs.db.base import Base
from pydantic import ValidationError
from sqlalchemy.exc import DataError, IntegrityError


class StoreError(Exception):
    """Base exception for store data-model errors."""

    rule = "store_error"

    def __init__(
        self,
        message: str,
        *,
        entity: str,
        field: Optional[str] = None,
        constraint: Optional[str] = None,
        identifier: Any = None,
        rule: Optional[str] = None,
    ):
        self.message = message
        self.entity = entity
        self.field = field
        self.constraint = constraint
        self.identifier = identifier
        if rule is not None:
            self.rule = rule
        super().__init__(message)

    def __repr__(self):
        return (
            f"<{type(self).__name__} rule={self.rule} entity={self.entity} "
            f"field={self.field}>"
        )


class NotFound(StoreError):
    rule = "not_found"


class ConstraintViolation(StoreError):
    rule = "constraint"


class DuplicateKey(ConstraintViolation):
    rule = "duplicate_key"


class ValueOutOfRange(ConstraintViolation):
    rule = "value_out_of_range"


class InvalidEnumValue(ConstraintViolation):
    rule = "invalid_enum_value"


class ReferentialIntegrityViolation(StoreError):
    rule = "referential_integrity"


class InvalidReference(ReferentialIntegrityViolation):
    rule = "invalid_reference"


class DeletionBlocked(ReferentialIntegrityViolation):
    rule = "deletion_blocked"


# ---------------------------------------------------------------------------
# IntegrityError translation
# ---------------------------------------------------------------------------

# PostgreSQL SQLSTATE codes (class 23, integrity constraint violation)
PG_RESTRICT_VIOLATION = "23001"
PG_NOT_NULL_VIOLATION = "23502"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_UNIQUE_VIOLATION = "23505"
PG_CHECK_VIOLATION = "23514"

# Class 22, data exception
PG_INVALID_TEXT_REPRESENTATION = "22P02"

_RULE_SUFFIXES = ("_non_negative", "_positive", "_range", "_enum")


def _sqlstate(orig) -> Optional[str]:
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _diag(orig, attribute: str) -> Optional[str]:
    diag = getattr(orig, "diag", None)
    return getattr(diag, attribute, None) if diag is not None else None


def _strip_table(name: str) -> str:
    for table in sorted(Base.metadata.tables, key=len, reverse=True):
        if name.startswith(f"{table}_"):
            return name[len(table) + 1 :]
    return name


def field_from_constraint(constraint: Optional[str]) -> Optional[str]:
    """Recover the column from a conventionally named constraint.

    ``ck_products_price_non_negative`` -> ``price``,
    ``uq_customers_email`` -> ``email``.
    """
    if not constraint:
        return None
    name = constraint
    for prefix in ("ck_", "uq_", "fk_", "pk_"):
        if name.startswith(prefix):
            name = name[len(prefix) :]
            break
    if name in Base.metadata.tables:
        # Table-level key such as a composite primary key
        return None
    name = _strip_table(name)
    for table in Base.metadata.tables:
        if name.endswith(f"_{table}"):
            name = name[: -(len(table) + 1)]
            break
    for suffix in _RULE_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name


def _sqlite_detail(message: str) -> str:
    """Text after the colon of a SQLite constraint message."""
    _, _, detail = message.partition(":")
    return detail.strip()


def _sqlite_columns(detail: str) -> Optional[str]:
    # "order_coupons.order_id, order_coupons.coupon_id" -> "order_id, coupon_id"
    columns = [part.strip().rsplit(".", 1)[-1] for part in detail.split(",") if part]
    return ", ".join(columns) or None


def translate_integrity_error(
    exc: IntegrityError, *, entity: str, operation: str = "write"
) -> StoreError:
    """Map a database integrity failure onto the store error taxonomy.

    ``operation="delete"`` turns a foreign key failure into ``DeletionBlocked``
    (a dependent row still references the target); any other foreign key
    failure is an ``InvalidReference``.
    """
    orig = getattr(exc, "orig", None)
    message = str(orig if orig is not None else exc)
    lowered = message.lower()
    sqlstate = _sqlstate(orig)
    constraint = _diag(orig, "constraint_name")

    if sqlstate == PG_UNIQUE_VIOLATION or "unique constraint" in lowered:
        field = field_from_constraint(constraint)
        if field is None and "unique constraint failed" in lowered:
            field = _sqlite_columns(_sqlite_detail(message))
        return DuplicateKey(
            f"{entity} with this {field or 'key'} already exists",
            entity=entity,
            field=field,
            constraint=constraint,
        )

    if (
        sqlstate in (PG_FOREIGN_KEY_VIOLATION, PG_RESTRICT_VIOLATION)
        or "foreign key constraint" in lowered
    ):
        field = field_from_constraint(constraint)
        if operation == "delete":
            return DeletionBlocked(
                f"{entity} is still referenced by dependent rows",
                entity=entity,
                field=field,
                constraint=constraint,
            )
        return InvalidReference(
            f"{entity} references a row that does not exist",
            entity=entity,
            field=field,
            constraint=constraint,
        )

    if sqlstate == PG_CHECK_VIOLATION or "check constraint" in lowered:
        if constraint is None and "check constraint failed" in lowered:
            constraint = _sqlite_detail(message) or None
        field = field_from_constraint(constraint)
        if constraint and constraint.endswith("_enum"):
            return InvalidEnumValue(
                f"{entity}.{field} is not an allowed value",
                entity=entity,
                field=field,
                constraint=constraint,
            )
        return ValueOutOfRange(
            f"{entity}.{field} is out of range",
            entity=entity,
            field=field,
            constraint=constraint,
        )

    if sqlstate == PG_NOT_NULL_VIOLATION or "not null constraint" in lowered:
        field = _diag(orig, "column_name")
        if field is None and "not null constraint failed" in lowered:
            field = _sqlite_columns(_sqlite_detail(message))
        return ConstraintViolation(
            f"{entity}.{field} is required",
            entity=entity,
            field=field,
            rule="required",
        )

    return ConstraintViolation(message, entity=entity, constraint=constraint)


def translate_data_error(exc: DataError, *, entity: str) -> StoreError:
    """Map a value its column type cannot hold onto the store error taxonomy."""
    orig = getattr(exc, "orig", None)
    message = str(orig if orig is not None else exc)
    field = _diag(orig, "column_name")

    if (
        _sqlstate(orig) == PG_INVALID_TEXT_REPRESENTATION
        and "enum" in message.lower()
    ):
        return InvalidEnumValue(
            f"{entity}.{field or 'value'} is not an allowed value",
            entity=entity,
            field=field,
        )
    return ValueOutOfRange(
        f"{entity}.{field or 'value'} does not fit its column: {message}",
        entity=entity,
        field=field,
    )


# ---------------------------------------------------------------------------
# Write-boundary validation translation
# ---------------------------------------------------------------------------

_RANGE_ERRORS = {
    "greater_than",
    "greater_than_equal",
    "less_than",
    "less_than_equal",
    "decimal_max_digits",
    "decimal_max_places",
    "decimal_whole_digits",
}


def translate_validation_error(exc: ValidationError, *, entity: str) -> StoreError:
    """Map the first pydantic error onto the store error taxonomy."""
    first = exc.errors()[0]
    field = ".".join(str(part) for part in first["loc"]) or None
    error_type = first["type"]
    message = f"{entity}.{field}: {first['msg']}"

    if error_type in _RANGE_ERRORS:
        return ValueOutOfRange(message, entity=entity, field=field)
    if error_type == "enum":
        return InvalidEnumValue(message, entity=entity, field=field)
    if error_type == "missing":
        return ConstraintViolation(message, entity=entity, field=field, rule="required")
    return ConstraintViolation(message, entity=entity, field=field, rule=error_type)
