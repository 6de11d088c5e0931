import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

LOGGER = logging.getLogger(__name__)

DATABASE_FILE = "sessions.db"

SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS SESSION (
        session_id TEXT PRIMARY KEY,
        history TEXT NOT NULL,
        analyzed_data TEXT,
        analyzed_image TEXT,
        task TEXT,
        created_at REAL NOT NULL,
        last_access REAL NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_session_last_access ON SESSION (last_access)",
)


class AsyncDatabaseInitializer:
    """
    Own the SQLite file that persists conversation sessions.

    - The file lives at `<database_dir>/sessions.db`; the directory is
      created on demand.
    - The schema is applied once per instance, on the first `connection()`.
      Rows from earlier runs are kept so sessions survive a restart.
    """

    def __init__(self, database_dir: Path | str) -> None:
        db_dir = Path(database_dir).expanduser()
        if db_dir.exists() and not db_dir.is_dir():
            raise RuntimeError(f"DATABASE_DIR={str(database_dir)!r} is a file, expected a directory.")
        try:
            db_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise RuntimeError(f"Cannot create session database directory {db_dir}") from exc

        self.db_path = db_dir / DATABASE_FILE
        self._ready = False
        self._ready_lock = asyncio.Lock()

    async def ensure_database(self, attempts: int = 3) -> None:
        """Apply the schema, retrying briefly while another writer holds the file."""
        async with self._ready_lock:
            if self._ready:
                return
            for attempt in range(1, attempts + 1):
                try:
                    async with aiosqlite.connect(self.db_path) as db:
                        for statement in SCHEMA:
                            await db.execute(statement)
                        await db.commit()
                    break
                except aiosqlite.OperationalError as exc:
                    if attempt == attempts:
                        raise
                    LOGGER.warning("Session schema setup failed (attempt %d): %s", attempt, exc)
                    await asyncio.sleep(0.1 * attempt)
            self._ready = True
            LOGGER.info("Session database ready at %s", self.db_path)

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield an open connection, applying the schema first if needed."""
        await self.ensure_database()
        async with aiosqlite.connect(self.db_path) as conn:
            yield conn
