"""
SQLite pragma helper for the pipeline store.

Usage:
    db = await aiosqlite.connect(path)
    await apply_sqlite_pragmas(db)
"""

import logging

import aiosqlite

logger = logging.getLogger(__name__)


async def apply_sqlite_pragmas(
    conn: aiosqlite.Connection,
    wal: bool = True,
    busy_timeout_ms: int = 5000,
) -> None:
    """
    Apply connection pragmas.

    Args:
        conn: aiosqlite connection
        wal: Enable WAL journaling so status reads don't block writers
        busy_timeout_ms: Wait this long on a locked database before failing
    """
    if wal:
        await conn.execute("PRAGMA journal_mode = WAL")

    if busy_timeout_ms > 0:
        await conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")

    logger.debug(f"Applied SQLite pragmas: WAL={wal}, busy_timeout={busy_timeout_ms}ms")
