"""Shared repository plumbing: session holder and SQLAlchemy error translation."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from taskflow.domain.exceptions import StoreException

logger = logging.getLogger(__name__)


class BaseRepository:
    """Holds the request session. Subclasses wrap every store call in store_errors()."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    @asynccontextmanager
    async def store_errors(self, operation: str) -> AsyncIterator[None]:
        """Translate SQLAlchemyError into StoreException(operation); domain errors pass through."""
        try:
            yield
        except SQLAlchemyError as e:
            logger.error("Store operation %s failed: %s", operation, e)
            raise StoreException(operation, str(e)) from e

    @asynccontextmanager
    async def savepoint(self) -> AsyncIterator[None]:
        """Run the block in a SAVEPOINT; an exception rolls back only the block's writes.

        Repositories sharing this session (the request transaction) all write
        inside the savepoint while it is open.
        """
        async with self.store_errors("savepoint"):
            async with self.db.begin_nested():
                yield
