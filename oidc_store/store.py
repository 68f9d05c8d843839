"""
Shared plumbing for the entity stores.

Every store works against a request-scoped ``AsyncSession``. Writes are
committed by the store itself and rolled back when they fail; updates and
deletes are conditional on the entity's concurrency token so a stale
in-memory entity can never overwrite (or remove) a row that changed since it
was read. Entities left live by a write are refreshed after the commit, so
sessions created with ``expire_on_commit=True`` work too.
"""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Callable, Optional

from loguru import logger
from sqlalchemy import delete, func, inspect, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

from oidc_store.database import generate_uuid
from oidc_store.encoding import DecodeCache
from oidc_store.exceptions import ArgumentError, ConcurrencyError, EntityInstantiationError
from oidc_store.identifiers import converter_for

QueryTransform = Callable[[Select, Any], Select]


def ensure_value(value: Any, param_name: str) -> Any:
    """Raise an ArgumentError when value is None."""
    if value is None:
        raise ArgumentError(param_name)
    return value


def ensure_text(value: Optional[str], param_name: str) -> str:
    """Raise an ArgumentError when value is None or empty."""
    if not value:
        raise ArgumentError(param_name)
    return value


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime. Naive values (as returned
    by backends that do not keep the offset, e.g. sqlite) are assumed UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EntityStore:
    """
    Base class for the per-kind stores.
    """

    entity_kind = "entity"
    entity_param = "entity"

    def __init__(self, cache: DecodeCache, session: AsyncSession, model: type):
        if cache is None:
            raise ArgumentError("cache")
        if session is None:
            raise ArgumentError("session")
        self.cache = cache
        self.session = session
        self.model = model
        self.converter = converter_for(model.__key_type__)

    def _entity(self, entity):
        return ensure_value(entity, self.entity_param)

    async def _stream(self, statement: Select) -> AsyncIterator[Any]:
        for item in (await self.session.execute(statement)).scalars():
            yield item

    def _discard(self, entity):
        """Drop pending in-memory changes so a later flush cannot persist them."""
        if entity in self.session:
            self.session.expunge(entity)

    @asynccontextmanager
    async def _writing(self):
        """
        Roll the session back when a write fails, so it stays usable for the
        next operation. Concurrency conflicts have written nothing and leave
        the transaction alone.
        """
        try:
            yield
        except ConcurrencyError:
            raise
        except Exception:
            await self.session.rollback()
            raise

    async def count(self) -> int:
        """Total number of rows."""
        return (
            await self.session.execute(select(func.count()).select_from(self.model))
        ).scalar_one()

    async def count_query(self, query: Callable[[Select], Select]) -> int:
        """Number of rows matched by a caller supplied query."""
        ensure_value(query, "query")
        subquery = query(select(self.model)).subquery()
        return (await self.session.execute(select(func.count()).select_from(subquery))).scalar_one()

    async def find_by_id(self, identifier: str):
        """Load an entity by its string identifier."""
        ensure_text(identifier, "identifier")
        key = self.converter.from_string(identifier)
        return (
            await self.session.execute(select(self.model).where(self.model.id == key))
        ).scalar_one_or_none()

    async def get(self, query: QueryTransform, state: Any = None):
        """First result of a caller supplied query, or None."""
        ensure_value(query, "query")
        return (await self.session.execute(query(select(self.model), state))).scalars().first()

    def list(self, count: Optional[int] = None, offset: Optional[int] = None) -> AsyncIterator:
        """
        Iterate over entities ordered by primary key, skipping ``offset`` rows
        and returning at most ``count`` rows.
        """
        statement = select(self.model).order_by(self.model.id)
        if offset is not None:
            statement = statement.offset(offset)
        if count is not None:
            statement = statement.limit(count)
        return self._stream(statement)

    def list_query(self, query: QueryTransform, state: Any = None) -> AsyncIterator:
        """Iterate over the results of a caller supplied query."""
        ensure_value(query, "query")
        return self._stream(query(select(self.model), state))

    async def instantiate(self):
        """Create a new, empty entity instance."""
        try:
            return self.model()
        except Exception as exc:
            raise EntityInstantiationError(
                f"An error occurred while trying to create a new {self.entity_kind} instance. "
                f"Make sure that the {self.entity_kind} entity ({self.model.__name__}) "
                "is not abstract and has a public parameterless constructor."
            ) from exc

    async def create(self, entity):
        """Insert an entity; generated keys are populated on the instance."""
        self._entity(entity)
        async with self._writing():
            self.session.add(entity)
            await self.session.flush()
            await self.session.commit()
            await self.session.refresh(entity)

    async def update(self, entity):
        """
        Persist every column of the entity, provided the stored concurrency
        token still matches the one held by the entity.
        """
        self._entity(entity)
        expected = entity.concurrency_token
        token = generate_uuid()
        values = {
            attr.key: getattr(entity, attr.key)
            for attr in inspect(self.model).column_attrs
            if attr.key != "id"
        }
        values["concurrency_token"] = token
        statement = (
            update(self.model)
            .where(self.model.id == entity.id, self.model.concurrency_token == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        async with self._writing():
            with self.session.no_autoflush:
                result = await self.session.execute(statement)
            if result.rowcount == 0:
                logger.debug(f"Concurrency conflict updating {self.entity_kind} {entity.id}")
                self._discard(entity)
                raise ConcurrencyError(self.entity_kind, entity.id)
            entity.concurrency_token = token
            await self.session.commit()
            if entity in self.session:
                await self.session.refresh(entity)

    async def delete(self, entity):
        """
        Delete the entity if its concurrency token still matches, along with
        any dependent rows, in a single transaction.
        """
        self._entity(entity)
        statement = (
            delete(self.model)
            .where(
                self.model.id == entity.id,
                self.model.concurrency_token == entity.concurrency_token,
            )
            .execution_options(synchronize_session=False)
        )
        async with self._writing():
            with self.session.no_autoflush:
                result = await self.session.execute(statement)
                if result.rowcount == 0:
                    logger.debug(f"Concurrency conflict deleting {self.entity_kind} {entity.id}")
                    self._discard(entity)
                    raise ConcurrencyError(self.entity_kind, entity.id)
                await self._cascade(entity)
            self._discard(entity)
            await self.session.commit()

    async def _cascade(self, entity):
        """Remove rows that depend on a deleted entity."""

    async def _delete_where(self, model: type, *criteria) -> int:
        result = await self.session.execute(
            delete(model).where(*criteria).execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def get_id(self, entity) -> Optional[str]:
        return self.converter.to_string(self._entity(entity).id)

    async def get_concurrency_token(self, entity) -> Optional[str]:
        return self._entity(entity).concurrency_token
