"""Store schema management (code-first approach)."""

import logging

from tasukun.core import db_client
from tasukun.core.config import constants


logger = logging.getLogger(__name__)


# Central list of all collections in the schema
COLLECTIONS = [
    constants.TASKS_COLLECTION,
    constants.GOOGLE_TOKENS_COLLECTION,
]

_DDL: dict[str, list[str]] = {
    "tasks": [
        """
        CREATE TABLE IF NOT EXISTS tasks (
            id TEXT PRIMARY KEY,
            owner_id TEXT NOT NULL,
            title TEXT NOT NULL CHECK (length(trim(title)) > 0),
            description TEXT,
            status TEXT NOT NULL DEFAULT 'todo' CHECK (status IN ('todo', 'in_progress', 'done')),
            priority TEXT NOT NULL DEFAULT 'medium' CHECK (priority IN ('low', 'medium', 'high')),
            due_date TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
        """,
        "CREATE INDEX IF NOT EXISTS idx_tasks_owner_created ON tasks (owner_id, created_at)",
    ],
    "user_google_tokens": [
        """
        CREATE TABLE IF NOT EXISTS user_google_tokens (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL UNIQUE,
            access_token TEXT NOT NULL,
            refresh_token TEXT,
            expiry_date TEXT NOT NULL
        )
        """,
    ],
}


async def init_db(*, db_path: str | None = None) -> None:
    """Create every collection that does not exist yet."""
    async with db_client.connect(db_path=db_path) as client:
        for collection in COLLECTIONS:
            await client.apply_schema(statements=_DDL[collection])
            logger.info("Collection ready", extra={"collection": collection})
