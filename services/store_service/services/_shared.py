"""Helpers shared by the store operations: validation, lookups and commits."""

from typing import Any, Optional, Type, TypeVar

from libs.common.logging import get_logger
from pydantic import BaseModel, ValidationError
from services.store_service.errors import (
    ConstraintViolation,
    InvalidReference,
    NotFound,
    StoreError,
    translate_data_error,
    translate_integrity_error,
    translate_validation_error,
)
from sqlalchemy import Executable, inspect, select
from sqlalchemy.exc import DataError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)
ModelT = TypeVar("ModelT")


def reject(error: StoreError) -> StoreError:
    logger.warning(
        "Rejected %s write: %s (field=%s)", error.entity, error.rule, error.field
    )
    return error


def validated(schema_cls: Type[SchemaT], *, entity: str, **fields: Any) -> SchemaT:
    """Validate write input before any SQL is emitted."""
    try:
        return schema_cls(**fields)
    except ValidationError as exc:
        raise reject(translate_validation_error(exc, entity=entity)) from exc


def apply_changes(obj, changes: dict, *, entity: str) -> None:
    """Assign validated changes, refusing ``None`` for NOT NULL columns."""
    columns = inspect(type(obj)).columns
    for key, value in changes.items():
        column = columns.get(key)
        if value is None and column is not None and not column.nullable:
            raise reject(
                ConstraintViolation(
                    f"{entity}.{key} is required",
                    entity=entity,
                    field=key,
                    rule="required",
                )
            )
    for key, value in changes.items():
        setattr(obj, key, value)


async def get_or_raise(
    db: AsyncSession,
    model: Type[ModelT],
    identifier: Any,
    *,
    entity: str,
    for_update: bool = False,
) -> ModelT:
    """Load a row by primary key, always refreshing it from the database."""
    query = (
        select(model)
        .where(model.id == identifier)
        .execution_options(populate_existing=True)
    )
    if for_update:
        query = query.with_for_update()
    result = await db.execute(query)
    obj = result.scalar_one_or_none()
    if obj is None:
        raise NotFound(
            f"{entity} {identifier} not found", entity=entity, identifier=identifier
        )
    return obj


async def ensure_exists(
    db: AsyncSession,
    model,
    identifier: Optional[Any],
    *,
    entity: str,
    field: str,
) -> None:
    """Raise InvalidReference if a non-null foreign reference has no parent row."""
    if identifier is None:
        return
    found = await db.scalar(select(model.id).where(model.id == identifier))
    if found is None:
        raise reject(
            InvalidReference(
                f"{entity}.{field} references missing {model.__tablename__} row "
                f"{identifier}",
                entity=entity,
                field=field,
                identifier=identifier,
            )
        )


async def commit_or_raise(
    db: AsyncSession,
    *,
    entity: str,
    operation: str = "write",
    statement: Optional[Executable] = None,
) -> None:
    """Commit the unit of work, translating integrity and data failures.

    ``statement`` (a bulk ``insert``/``delete``) is executed first in the
    same transaction; such statements hit the database immediately rather
    than at flush time.
    """
    try:
        if statement is not None:
            await db.execute(statement)
        await db.commit()
    except IntegrityError as exc:
        await db.rollback()
        raise reject(
            translate_integrity_error(exc, entity=entity, operation=operation)
        ) from exc
    except DataError as exc:
        await db.rollback()
        raise reject(translate_data_error(exc, entity=entity)) from exc
