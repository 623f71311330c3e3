import abc
import asyncio
import json
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

import asyncpg

from .config import settings
from .models import Analysis, AnalysisCreate

DEFAULT_LIST_LIMIT = 10
MAX_LIST_LIMIT = 50

# Column order shared by INSERT and the row mapping.
COLUMNS = (
    "profile_url",
    "username",
    "score_overall",
    "score_documentation",
    "score_code_quality",
    "score_activity",
    "score_project_impact",
    "score_discoverability",
    "repo_count",
    "pinned_count",
    "top_languages",
    "recent_commit_days",
    "strengths",
    "red_flags",
    "suggestions",
    "repos",
    "is_partial",
    "partial_reason",
)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS github_analyses (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    profile_url TEXT NOT NULL,
    username TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    score_overall INT NOT NULL,
    score_documentation INT NOT NULL,
    score_code_quality INT NOT NULL,
    score_activity INT NOT NULL,
    score_project_impact INT NOT NULL,
    score_discoverability INT NOT NULL,
    repo_count INT NOT NULL,
    pinned_count INT NOT NULL DEFAULT 0,
    top_languages JSONB NOT NULL DEFAULT '[]'::jsonb,
    recent_commit_days INT NOT NULL,
    strengths JSONB NOT NULL DEFAULT '[]'::jsonb,
    red_flags JSONB NOT NULL DEFAULT '[]'::jsonb,
    suggestions JSONB NOT NULL DEFAULT '[]'::jsonb,
    repos JSONB NOT NULL DEFAULT '[]'::jsonb,
    is_partial BOOLEAN NOT NULL DEFAULT FALSE,
    partial_reason TEXT
);
CREATE INDEX IF NOT EXISTS idx_github_analyses_created_at
    ON github_analyses (created_at DESC);
"""


def clamp_limit(limit: int) -> int:
    return max(1, min(MAX_LIST_LIMIT, limit))


class AnalysisRepository(abc.ABC):
    """
    Append-only store of analyses.

    Implementations assign the id and creation timestamp; there is no
    update or delete.
    """

    @abc.abstractmethod
    async def create(self, analysis: AnalysisCreate) -> Analysis:
        ...

    @abc.abstractmethod
    async def get(self, analysis_id: str) -> Optional[Analysis]:
        ...

    @abc.abstractmethod
    async def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Analysis]:
        """Newest first."""
        ...


class InMemoryAnalysisRepository(AnalysisRepository):
    """Process-local store, used for tests and one-off CLI runs."""

    def __init__(self):
        self._items: Dict[str, Analysis] = {}
        self._lock = asyncio.Lock()

    async def create(self, analysis: AnalysisCreate) -> Analysis:
        async with self._lock:
            analysis_id = str(uuid.uuid4())
            while analysis_id in self._items:
                analysis_id = str(uuid.uuid4())
            created = Analysis(
                id=analysis_id,
                created_at=datetime.now(timezone.utc),
                **analysis.model_dump(),
            )
            self._items[analysis_id] = created
            return created

    async def get(self, analysis_id: str) -> Optional[Analysis]:
        return self._items.get(analysis_id)

    async def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Analysis]:
        # Insertion order breaks ties between identical timestamps.
        newest_first = sorted(
            reversed(list(self._items.values())),
            key=lambda a: a.created_at,
            reverse=True,
        )
        return newest_first[: clamp_limit(limit)]


async def _init_connection(conn):
    """Decode JSONB columns to Python objects on every pooled connection."""
    await conn.set_type_codec(
        "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
    )


class PostgresAnalysisRepository(AnalysisRepository):
    """
    PostgreSQL-backed analysis store.

    Handles the connection pool, schema creation and the insert/select
    queries for the github_analyses table. Nested lists are stored as JSONB.
    """

    def __init__(self, dsn: str = settings.database_url):
        self.dsn = dsn
        self.pool = None

    async def init(self):
        """Initialize the connection pool and make sure the table exists."""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=1,
            max_size=10,
            command_timeout=60,
            init=_init_connection,
        )
        async with self.pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)

    async def close(self):
        """Close the database connection pool."""
        if self.pool:
            await self.pool.close()

    async def create(self, analysis: AnalysisCreate) -> Analysis:
        """Insert one analysis; the database assigns id and created_at."""
        data = analysis.model_dump(mode="json")
        # Nested JSONB records keep their camelCase wire names.
        wire = analysis.model_dump(mode="json", by_alias=True)
        data["repos"] = wire["repos"]
        data["top_languages"] = wire["topLanguages"]
        placeholders = ", ".join(f"${i}" for i in range(1, len(COLUMNS) + 1))
        sql = (
            f"INSERT INTO github_analyses ({', '.join(COLUMNS)}) "
            f"VALUES ({placeholders}) RETURNING *"
        )

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(sql, *(data[column] for column in COLUMNS))
        return Analysis.model_validate(dict(row))

    async def get(self, analysis_id: str) -> Optional[Analysis]:
        try:
            key = uuid.UUID(analysis_id)
        except ValueError:
            return None

        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                "SELECT * FROM github_analyses WHERE id = $1", key
            )
        return Analysis.model_validate(dict(row)) if row else None

    async def list(self, limit: int = DEFAULT_LIST_LIMIT) -> List[Analysis]:
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                "SELECT * FROM github_analyses ORDER BY created_at DESC LIMIT $1",
                clamp_limit(limit),
            )
        return [Analysis.model_validate(dict(row)) for row in rows]
