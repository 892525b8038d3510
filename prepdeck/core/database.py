"""
Database client lifecycle.

The Prisma client is created on first use so that importing the application
does not require a generated client or a reachable database.

Copyright (C) 2025 Prepdeck
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator, Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING

from prisma.errors import PrismaError

from ..utils.exceptions import PersistenceError

if TYPE_CHECKING:
    from prisma import Prisma

logger = logging.getLogger(__name__)

_client: Prisma | None = None


def get_prisma() -> Prisma:
    """Return the process-wide Prisma client, creating it on first use."""
    global _client
    if _client is None:
        from prisma import Prisma

        _client = Prisma()
    return _client


async def connect_db() -> None:
    db = get_prisma()
    if not db.is_connected():
        await db.connect()
        logger.info("Database connected")


async def disconnect_db() -> None:
    if _client is not None and _client.is_connected():
        await _client.disconnect()
        logger.info("Database disconnected")


async def check_db_health() -> str:
    """Return "connected" if a trivial query succeeds, otherwise "disconnected"."""
    try:
        await get_prisma().query_raw("SELECT 1 as test")
        return "connected"
    except Exception as e:
        logger.warning("Database health check failed", extra={"error": str(e)})
        return "disconnected"


async def get_db_client() -> AsyncGenerator[Prisma, None]:
    """FastAPI dependency yielding a connected Prisma client."""
    await connect_db()
    yield get_prisma()


@contextmanager
def translate_store_errors(operation: str, **context) -> Iterator[None]:
    """Re-raise Prisma client errors as PersistenceError, logging the failed operation."""
    try:
        yield
    except PrismaError as e:
        logger.error(
            f"Store operation failed: {operation}",
            exc_info=True,
            extra={"operation": operation, **context},
        )
        raise PersistenceError(detail=f"{operation}: {e}") from e
