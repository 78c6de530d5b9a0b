"""SQLite datastore via aiosqlite."""

from __future__ import annotations

import logging
import uuid

import aiosqlite

from dossier.errors import ConflictError, ReferentialError, StorageFailure, ValidationError

logger = logging.getLogger(__name__)

SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    research_question TEXT NOT NULL,
    hypothesis TEXT,
    timespan_start TEXT,
    timespan_end TEXT,
    status TEXT NOT NULL DEFAULT 'active' CHECK (status IN ('active', 'archived')),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS search_rounds (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL REFERENCES projects(id),
    label TEXT NOT NULL,
    objective TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS search_queries (
    id TEXT PRIMARY KEY,
    round_id TEXT NOT NULL REFERENCES search_rounds(id),
    query_text TEXT NOT NULL,
    executed_at TEXT NOT NULL,
    notes TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS sources (
    id TEXT PRIMARY KEY,
    project_id TEXT NOT NULL REFERENCES projects(id),
    url TEXT NOT NULL,
    normalized_url TEXT NOT NULL,
    source_type TEXT NOT NULL,
    title TEXT,
    author TEXT,
    publisher TEXT,
    published_at TEXT,
    summary TEXT,
    notes TEXT,
    is_archived INTEGER NOT NULL DEFAULT 0,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    UNIQUE (project_id, normalized_url)
);

CREATE TABLE IF NOT EXISTS round_sources (
    round_id TEXT NOT NULL REFERENCES search_rounds(id),
    source_id TEXT NOT NULL REFERENCES sources(id),
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    PRIMARY KEY (round_id, source_id)
);

CREATE TABLE IF NOT EXISTS extracts (
    id TEXT PRIMARY KEY,
    source_id TEXT NOT NULL REFERENCES sources(id),
    extract_type TEXT NOT NULL,
    extract_text TEXT NOT NULL,
    context_text TEXT NOT NULL,
    location_ref TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- extract_id is a weak back-reference: no foreign key, no cascade.
CREATE TABLE IF NOT EXISTS evidence (
    id TEXT PRIMARY KEY,
    source_id TEXT NOT NULL REFERENCES sources(id),
    extract_id TEXT,
    evidence_type TEXT NOT NULL,
    evidence_text TEXT NOT NULL,
    context_text TEXT NOT NULL,
    location_ref TEXT NOT NULL,
    why_relevant TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""

# Creation order. created_at has one-second resolution, rowid breaks ties.
CREATION_ORDER = "created_at ASC, rowid ASC"


class Database:
    """Async SQLite datastore for projects, rounds, sources, extracts and evidence.

    Integrity errors are translated into ``ReferentialError`` (missing foreign
    key) or ``ConflictError`` (uniqueness); anything else the driver raises
    becomes ``StorageFailure``.
    """

    def __init__(self, path: str = "dossier.db") -> None:
        self.path = path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        self._db = await aiosqlite.connect(self.path)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        await self._db.executescript(SCHEMA)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    @property
    def is_connected(self) -> bool:
        return self._db is not None

    @property
    def db(self) -> aiosqlite.Connection:
        if self._db is None:
            raise RuntimeError("Database not connected, call connect() first")
        return self._db

    # -- Plumbing --

    async def _execute(
        self, sql: str, params: tuple = (), missing: str = "Referenced record not found"
    ) -> aiosqlite.Cursor:
        try:
            return await self.db.execute(sql, params)
        except aiosqlite.IntegrityError as exc:
            await self.db.rollback()
            raise _constraint_error(exc, missing) from exc
        except aiosqlite.Error as exc:
            logger.exception("Datastore query failed")
            raise StorageFailure("The datastore could not complete the request") from exc

    async def _write(
        self, sql: str, params: tuple = (), missing: str = "Referenced record not found"
    ) -> int:
        """Execute a write, commit, and return the number of affected rows."""
        cursor = await self._execute(sql, params, missing)
        try:
            await self.db.commit()
        except aiosqlite.Error as exc:
            logger.exception("Datastore commit failed")
            raise StorageFailure("The datastore could not complete the request") from exc
        return cursor.rowcount

    async def _fetch_one(self, sql: str, params: tuple = ()) -> dict | None:
        cursor = await self._execute(sql, params)
        row = await cursor.fetchone()
        return dict(row) if row else None

    async def _fetch_all(self, sql: str, params: tuple = ()) -> list[dict]:
        cursor = await self._execute(sql, params)
        rows = await cursor.fetchall()
        return [dict(r) for r in rows]

    # -- Projects --

    async def create_project(
        self,
        title: str,
        research_question: str,
        hypothesis: str | None = None,
        timespan_start: str | None = None,
        timespan_end: str | None = None,
    ) -> str:
        project_id = str(uuid.uuid4())
        await self._write(
            "INSERT INTO projects (id, title, research_question, hypothesis, timespan_start, timespan_end) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (project_id, title, research_question, hypothesis, timespan_start, timespan_end),
        )
        return project_id

    async def get_project(self, project_id: str) -> dict | None:
        return await self._fetch_one(
            "SELECT rowid AS seq, * FROM projects WHERE id = ?", (project_id,)
        )

    async def list_projects(self, include_archived: bool = False) -> list[dict]:
        where = "" if include_archived else "WHERE status = 'active'"
        return await self._fetch_all(
            f"SELECT rowid AS seq, * FROM projects {where} ORDER BY created_at DESC, rowid DESC"
        )

    async def archive_project(self, project_id: str) -> int:
        return await self._write(
            "UPDATE projects SET status = 'archived' WHERE id = ?", (project_id,)
        )

    # -- Search rounds --

    async def create_round(self, project_id: str, label: str, objective: str) -> str:
        round_id = str(uuid.uuid4())
        await self._write(
            "INSERT INTO search_rounds (id, project_id, label, objective) VALUES (?, ?, ?, ?)",
            (round_id, project_id, label, objective),
            missing="Project not found",
        )
        return round_id

    async def get_round(self, round_id: str) -> dict | None:
        return await self._fetch_one(
            "SELECT rowid AS seq, * FROM search_rounds WHERE id = ?", (round_id,)
        )

    async def list_rounds(self, project_id: str) -> list[dict]:
        return await self._fetch_all(
            f"SELECT rowid AS seq, * FROM search_rounds WHERE project_id = ? ORDER BY {CREATION_ORDER}",
            (project_id,),
        )

    async def delete_round_queries(self, round_id: str) -> int:
        return await self._write("DELETE FROM search_queries WHERE round_id = ?", (round_id,))

    async def delete_round_links(self, round_id: str) -> int:
        return await self._write("DELETE FROM round_sources WHERE round_id = ?", (round_id,))

    async def delete_round(self, round_id: str) -> int:
        return await self._write("DELETE FROM search_rounds WHERE id = ?", (round_id,))

    # -- Search queries --

    async def create_query(
        self, round_id: str, query_text: str, executed_at: str, notes: str | None = None
    ) -> str:
        query_id = str(uuid.uuid4())
        await self._write(
            "INSERT INTO search_queries (id, round_id, query_text, executed_at, notes) "
            "VALUES (?, ?, ?, ?, ?)",
            (query_id, round_id, query_text, executed_at, notes),
            missing="Round not found",
        )
        return query_id

    async def list_queries(self, round_id: str) -> list[dict]:
        return await self._fetch_all(
            "SELECT rowid AS seq, * FROM search_queries WHERE round_id = ? "
            f"ORDER BY executed_at ASC, {CREATION_ORDER}",
            (round_id,),
        )

    # -- Sources --

    async def create_source(
        self,
        project_id: str,
        url: str,
        normalized_url: str,
        source_type: str,
        metadata: dict[str, str | None],
    ) -> str:
        source_id = str(uuid.uuid4())
        await self._write(
            "INSERT INTO sources (id, project_id, url, normalized_url, source_type, "
            "title, author, publisher, published_at, summary, notes) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                source_id,
                project_id,
                url,
                normalized_url,
                source_type,
                metadata.get("title"),
                metadata.get("author"),
                metadata.get("publisher"),
                metadata.get("published_at"),
                metadata.get("summary"),
                metadata.get("notes"),
            ),
            missing="Project not found",
        )
        return source_id

    async def get_source(self, source_id: str) -> dict | None:
        return await self._fetch_one(
            "SELECT rowid AS seq, * FROM sources WHERE id = ?", (source_id,)
        )

    async def find_source(self, project_id: str, normalized_url: str) -> dict | None:
        return await self._fetch_one(
            "SELECT rowid AS seq, * FROM sources WHERE project_id = ? AND normalized_url = ?",
            (project_id, normalized_url),
        )

    async def list_sources(
        self, project_id: str, include_archived: bool = False, newest_first: bool = True
    ) -> list[dict]:
        archived = "" if include_archived else "AND is_archived = 0"
        order = "created_at DESC, rowid DESC" if newest_first else CREATION_ORDER
        return await self._fetch_all(
            f"SELECT rowid AS seq, * FROM sources WHERE project_id = ? {archived} ORDER BY {order}",
            (project_id,),
        )

    async def archive_source(self, source_id: str) -> int:
        return await self._write("UPDATE sources SET is_archived = 1 WHERE id = ?", (source_id,))

    # -- Round / source links --

    async def upsert_round_source(self, round_id: str, source_id: str) -> None:
        await self._write(
            "INSERT INTO round_sources (round_id, source_id) VALUES (?, ?) "
            "ON CONFLICT (round_id, source_id) DO NOTHING",
            (round_id, source_id),
            missing="Round or source not found",
        )

    async def delete_round_source(self, round_id: str, source_id: str) -> int:
        return await self._write(
            "DELETE FROM round_sources WHERE round_id = ? AND source_id = ?",
            (round_id, source_id),
        )

    async def list_round_sources(self, round_id: str, include_archived: bool = True) -> list[dict]:
        archived = "" if include_archived else "AND s.is_archived = 0"
        return await self._fetch_all(
            "SELECT s.rowid AS seq, s.* FROM round_sources rs "
            "JOIN sources s ON s.id = rs.source_id "
            f"WHERE rs.round_id = ? {archived} "
            "ORDER BY rs.created_at ASC, rs.rowid ASC",
            (round_id,),
        )

    # -- Extracts --

    async def create_extract(
        self,
        source_id: str,
        extract_type: str,
        extract_text: str,
        context_text: str,
        location_ref: str,
    ) -> str:
        extract_id = str(uuid.uuid4())
        await self._write(
            "INSERT INTO extracts (id, source_id, extract_type, extract_text, context_text, location_ref) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (extract_id, source_id, extract_type, extract_text, context_text, location_ref),
            missing="Source not found",
        )
        return extract_id

    async def get_extract(self, extract_id: str) -> dict | None:
        return await self._fetch_one(
            "SELECT rowid AS seq, * FROM extracts WHERE id = ?", (extract_id,)
        )

    async def list_extracts(self, source_id: str) -> list[dict]:
        return await self._fetch_all(
            f"SELECT rowid AS seq, * FROM extracts WHERE source_id = ? ORDER BY {CREATION_ORDER}",
            (source_id,),
        )

    async def delete_extract(self, extract_id: str) -> int:
        return await self._write("DELETE FROM extracts WHERE id = ?", (extract_id,))

    # -- Evidence --

    async def create_evidence(
        self,
        source_id: str,
        evidence_type: str,
        evidence_text: str,
        context_text: str,
        location_ref: str,
        why_relevant: str,
        extract_id: str | None = None,
    ) -> str:
        evidence_id = str(uuid.uuid4())
        await self._write(
            "INSERT INTO evidence (id, source_id, extract_id, evidence_type, evidence_text, "
            "context_text, location_ref, why_relevant) VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                evidence_id,
                source_id,
                extract_id,
                evidence_type,
                evidence_text,
                context_text,
                location_ref,
                why_relevant,
            ),
            missing="Source not found",
        )
        return evidence_id

    async def get_evidence(self, evidence_id: str) -> dict | None:
        return await self._fetch_one(
            "SELECT rowid AS seq, * FROM evidence WHERE id = ?", (evidence_id,)
        )

    async def list_evidence(self, source_id: str) -> list[dict]:
        return await self._fetch_all(
            f"SELECT rowid AS seq, * FROM evidence WHERE source_id = ? ORDER BY {CREATION_ORDER}",
            (source_id,),
        )

    async def list_project_evidence(self, project_id: str) -> list[dict]:
        return await self._fetch_all(
            "SELECT e.rowid AS seq, e.* FROM evidence e "
            "JOIN sources s ON s.id = e.source_id "
            "WHERE s.project_id = ? ORDER BY e.created_at ASC, e.rowid ASC",
            (project_id,),
        )

    async def delete_evidence(self, evidence_id: str) -> int:
        return await self._write("DELETE FROM evidence WHERE id = ?", (evidence_id,))


def _constraint_error(exc: aiosqlite.IntegrityError, missing: str) -> Exception:
    message = str(exc)
    if "FOREIGN KEY" in message:
        return ReferentialError(missing)
    if "UNIQUE" in message or "PRIMARY KEY" in message:
        return ConflictError(f"Record already exists ({message})")
    return ValidationError(f"Constraint violated ({message})")
