"""SQLite-backed repository for site content."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Sequence
from uuid import uuid4

import aiosqlite

from .errors import (
    ConstraintViolation,
    NotFoundError,
    ReferenceConstraintError,
    RegistrationClosed,
    UniqueConstraintError,
)

logger = logging.getLogger(__name__)

Record = dict[str, Any]


@dataclass(frozen=True)
class TableSpec:
    """Columns a table accepts and how they are stored."""

    columns: tuple[str, ...]
    json_columns: frozenset[str] = field(default_factory=frozenset)
    bool_columns: frozenset[str] = field(default_factory=frozenset)
    timestamps: tuple[str, ...] = ("created_at", "updated_at")


TABLES: dict[str, TableSpec] = {
    "admins": TableSpec(
        columns=("email", "name", "password_hash", "role"),
        timestamps=("created_at",),
    ),
    "categories": TableSpec(columns=("name", "slug")),
    "projects": TableSpec(
        columns=(
            "title",
            "slug",
            "description",
            "location",
            "city",
            "country",
            "start_date",
            "completion_date",
            "status",
            "client",
            "project_size",
            "technical_specs",
            "team_credits",
            "awards",
            "is_featured",
            "images",
            "featured_image",
            "published_at",
        ),
        json_columns=frozenset({"technical_specs", "team_credits", "awards", "images"}),
        bool_columns=frozenset({"is_featured"}),
    ),
    "articles": TableSpec(
        columns=(
            "title",
            "slug",
            "excerpt",
            "content",
            "featured_image",
            "author_id",
            "tags",
            "seo_title",
            "seo_description",
            "published_at",
        ),
        json_columns=frozenset({"tags"}),
    ),
    "team_members": TableSpec(
        columns=(
            "name",
            "title",
            "department",
            "bio",
            "photo",
            "email",
            "linkedin",
            "sort_order",
        ),
    ),
    "services": TableSpec(
        columns=("title", "description", "features", "is_active", "sort_order"),
        json_columns=frozenset({"features"}),
        bool_columns=frozenset({"is_active"}),
    ),
    "media": TableSpec(
        columns=("filename", "filepath", "mimetype", "size", "variants"),
        json_columns=frozenset({"variants"}),
        timestamps=("created_at",),
    ),
    "site_settings": TableSpec(
        columns=(
            "company_name",
            "tagline",
            "description",
            "contact_email",
            "phone",
            "address",
            "social_links",
            "logo",
            "hero_images",
            "hero_title",
            "hero_subtitle",
            "seo_default_title",
            "seo_default_desc",
        ),
        json_columns=frozenset({"social_links", "hero_images"}),
    ),
    "contact_submissions": TableSpec(
        columns=(
            "name",
            "email",
            "phone",
            "company",
            "project_type",
            "message",
            "is_read",
        ),
        bool_columns=frozenset({"is_read"}),
        timestamps=("created_at",),
    ),
    "analytics": TableSpec(
        columns=(
            "type",
            "resource_id",
            "resource_type",
            "path",
            "user_agent",
            "ip_address",
        ),
        timestamps=("created_at",),
    ),
}


def utcnow_iso() -> str:
    """Return the current UTC time in the format stored by this repository."""

    return datetime.now(timezone.utc).isoformat(timespec="microseconds")


def to_db_timestamp(value: datetime) -> str:
    """Normalize a datetime to the stored UTC ISO format."""

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="microseconds")


def _translate_integrity_error(exc: aiosqlite.IntegrityError) -> ConstraintViolation | RegistrationClosed:
    message = str(exc)
    if message.startswith("UNIQUE constraint failed"):
        columns = tuple(
            part.strip().split(".", 1)[-1]
            for part in message.split(":", 1)[-1].split(",")
            if part.strip()
        )
        if "singleton" in columns:
            return RegistrationClosed("An admin account already exists")
        label = ", ".join(columns) or "value"
        return UniqueConstraintError(f"{label} already exists", fields=columns)
    if "FOREIGN KEY" in message:
        return ReferenceConstraintError("Record is referenced by or references missing data")
    return ConstraintViolation(message)


class ContentRepository:
    """Persist site content, the admin account, and analytics events."""

    def __init__(self, database_path: Path):
        self._path = database_path
        self._connection: aiosqlite.Connection | None = None
        # one connection is shared by every request; writes must not interleave
        self._write_lock = asyncio.Lock()

    async def initialize(self) -> None:
        """Open the SQLite connection and ensure tables exist."""

        if self._connection is not None:
            return

        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._path)
        self._connection.row_factory = aiosqlite.Row
        await self._connection.execute("PRAGMA journal_mode=WAL;")
        await self._connection.execute("PRAGMA foreign_keys=ON;")
        await self._create_schema()

    async def _create_schema(self) -> None:
        assert self._connection is not None
        await self._connection.executescript(
            """
            CREATE TABLE IF NOT EXISTS admins (
                id TEXT PRIMARY KEY,
                email TEXT NOT NULL UNIQUE,
                name TEXT NOT NULL,
                password_hash TEXT NOT NULL,
                role TEXT NOT NULL DEFAULT 'admin',
                singleton INTEGER NOT NULL DEFAULT 1 UNIQUE CHECK (singleton = 1),
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS admin_tokens (
                token_hash TEXT PRIMARY KEY,
                admin_id TEXT NOT NULL REFERENCES admins(id) ON DELETE CASCADE,
                created_at TEXT NOT NULL,
                expires_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS categories (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL UNIQUE,
                slug TEXT NOT NULL UNIQUE,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS projects (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                slug TEXT NOT NULL UNIQUE,
                description TEXT NOT NULL,
                location TEXT NOT NULL,
                city TEXT,
                country TEXT,
                start_date TEXT,
                completion_date TEXT,
                status TEXT NOT NULL,
                client TEXT,
                project_size TEXT,
                technical_specs TEXT,
                team_credits TEXT,
                awards TEXT,
                is_featured INTEGER NOT NULL DEFAULT 0,
                images TEXT,
                featured_image TEXT,
                published_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS project_categories (
                project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
                category_id TEXT NOT NULL REFERENCES categories(id) ON DELETE RESTRICT,
                PRIMARY KEY (project_id, category_id)
            );

            CREATE TABLE IF NOT EXISTS related_projects (
                project_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
                related_id TEXT NOT NULL REFERENCES projects(id) ON DELETE CASCADE,
                PRIMARY KEY (project_id, related_id)
            );

            CREATE TABLE IF NOT EXISTS team_members (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                title TEXT NOT NULL,
                department TEXT,
                bio TEXT,
                photo TEXT,
                email TEXT,
                linkedin TEXT,
                sort_order INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS articles (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                slug TEXT NOT NULL UNIQUE,
                excerpt TEXT,
                content TEXT NOT NULL,
                featured_image TEXT,
                author_id TEXT REFERENCES team_members(id) ON DELETE SET NULL,
                tags TEXT,
                seo_title TEXT,
                seo_description TEXT,
                published_at TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS services (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                description TEXT NOT NULL,
                features TEXT,
                is_active INTEGER NOT NULL DEFAULT 1,
                sort_order INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS media (
                id TEXT PRIMARY KEY,
                filename TEXT NOT NULL,
                filepath TEXT NOT NULL,
                mimetype TEXT NOT NULL,
                size INTEGER NOT NULL,
                variants TEXT,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS site_settings (
                id TEXT PRIMARY KEY,
                company_name TEXT NOT NULL,
                tagline TEXT,
                description TEXT,
                contact_email TEXT NOT NULL,
                phone TEXT,
                address TEXT,
                social_links TEXT,
                logo TEXT,
                hero_images TEXT,
                hero_title TEXT,
                hero_subtitle TEXT,
                seo_default_title TEXT,
                seo_default_desc TEXT,
                created_at TEXT NOT NULL,
                updated_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS contact_submissions (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                phone TEXT,
                company TEXT,
                project_type TEXT,
                message TEXT NOT NULL,
                is_read INTEGER NOT NULL DEFAULT 0,
                created_at TEXT NOT NULL
            );

            CREATE TABLE IF NOT EXISTS analytics (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL,
                resource_id TEXT,
                resource_type TEXT,
                path TEXT,
                user_agent TEXT,
                ip_address TEXT,
                created_at TEXT NOT NULL
            );

            -- Performance indexes
            CREATE INDEX IF NOT EXISTS idx_projects_published_at ON projects(published_at);
            CREATE INDEX IF NOT EXISTS idx_articles_published_at ON articles(published_at);
            CREATE INDEX IF NOT EXISTS idx_project_categories_category ON project_categories(category_id);
            CREATE INDEX IF NOT EXISTS idx_admin_tokens_expires_at ON admin_tokens(expires_at);
            CREATE INDEX IF NOT EXISTS idx_analytics_type_created ON analytics(type, created_at);
            CREATE INDEX IF NOT EXISTS idx_analytics_resource ON analytics(resource_id);
            """
        )
        await self._connection.commit()

    async def close(self) -> None:
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    @property
    def _db(self) -> aiosqlite.Connection:
        assert self._connection is not None, "repository is not initialized"
        return self._connection

    # ------------------------------------------------------------------
    # Generic table operations
    # ------------------------------------------------------------------

    @staticmethod
    def _spec(table: str) -> TableSpec:
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    def _encode(self, spec: TableSpec, values: dict[str, Any]) -> dict[str, Any]:
        encoded: dict[str, Any] = {}
        for column, value in values.items():
            if column not in spec.columns:
                raise ValueError(f"Unknown column: {column}")
            if column in spec.json_columns:
                encoded[column] = None if value is None else json.dumps(value)
            elif column in spec.bool_columns:
                encoded[column] = 1 if value else 0
            else:
                encoded[column] = value
        return encoded

    def _decode(self, spec: TableSpec, row: aiosqlite.Row) -> Record:
        record: Record = {key: row[key] for key in row.keys()}
        for column in spec.json_columns:
            raw = record.get(column)
            if isinstance(raw, str):
                try:
                    record[column] = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Invalid JSON stored in %s", column)
                    record[column] = None
        for column in spec.bool_columns:
            if column in record:
                record[column] = bool(record[column])
        return record

    async def _execute_write(self, sql: str, params: Sequence[Any]) -> int:
        async with self._write_lock:
            try:
                cursor = await self._db.execute(sql, params)
            except aiosqlite.IntegrityError as exc:
                await self._db.rollback()
                raise _translate_integrity_error(exc) from exc
            affected = cursor.rowcount
            await cursor.close()
            await self._db.commit()
        return affected

    async def create(self, table: str, values: dict[str, Any]) -> Record:
        """Insert a record and return it as stored."""

        spec = self._spec(table)
        encoded = self._encode(spec, values)
        record_id = uuid4().hex
        now = utcnow_iso()
        columns = ["id", *encoded.keys(), *spec.timestamps]
        params = [record_id, *encoded.values(), *(now for _ in spec.timestamps)]
        placeholders = ", ".join("?" for _ in columns)
        await self._execute_write(
            f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})",
            params,
        )
        record = await self.get(table, record_id)
        if record is None:
            raise RuntimeError(f"Insert into {table} failed to persist")
        return record

    async def update(self, table: str, record_id: str, values: dict[str, Any]) -> Record:
        """Update the given columns of a record and return the new state."""

        spec = self._spec(table)
        encoded = self._encode(spec, values)
        if "updated_at" in spec.timestamps:
            encoded["updated_at"] = utcnow_iso()
        if encoded:
            assignments = ", ".join(f"{column} = ?" for column in encoded)
            updated = await self._execute_write(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                [*encoded.values(), record_id],
            )
            if not updated:
                raise NotFoundError(f"{table} record {record_id} not found")
        record = await self.get(table, record_id)
        if record is None:
            raise NotFoundError(f"{table} record {record_id} not found")
        return record

    async def get(self, table: str, record_id: str) -> Record | None:
        """Return a single record by id, if present."""

        return await self.find_one(table, "id", record_id)

    async def find_by_slug(self, table: str, slug: str) -> Record | None:
        """Return the record holding ``slug`` in the table's slug namespace."""

        return await self.find_one(table, "slug", slug)

    async def find_one(self, table: str, column: str, value: Any) -> Record | None:
        spec = self._spec(table)
        if column != "id" and column not in spec.columns:
            raise ValueError(f"Unknown column: {column}")
        cursor = await self._db.execute(
            f"SELECT * FROM {table} WHERE {column} = ? LIMIT 1",
            (value,),
        )
        row = await cursor.fetchone()
        await cursor.close()
        if row is None:
            return None
        return self._decode(spec, row)

    async def first(self, table: str) -> Record | None:
        """Return the oldest record of a table (used for singleton rows)."""

        records = await self.list_records(table, order_by="created_at ASC", limit=1)
        return records[0] if records else None

    async def delete(self, table: str, record_id: str) -> bool:
        """Remove a record; returns False when it did not exist."""

        self._spec(table)
        deleted = await self._execute_write(
            f"DELETE FROM {table} WHERE id = ?",
            (record_id,),
        )
        return bool(deleted)

    async def count(
        self,
        table: str,
        where: str = "",
        params: Sequence[Any] = (),
    ) -> int:
        self._spec(table)
        clause = f" WHERE {where}" if where else ""
        cursor = await self._db.execute(
            f"SELECT COUNT(*) FROM {table}{clause}",
            params,
        )
        row = await cursor.fetchone()
        await cursor.close()
        return int(row[0]) if row else 0

    async def list_records(
        self,
        table: str,
        *,
        where: str = "",
        params: Sequence[Any] = (),
        order_by: str = "created_at DESC",
        limit: int | None = None,
        offset: int = 0,
    ) -> list[Record]:
        """Return records matching an internal ``where`` fragment."""

        spec = self._spec(table)
        sql = f"SELECT * FROM {table}"
        if where:
            sql += f" WHERE {where}"
        sql += f" ORDER BY {order_by}"
        query_params = list(params)
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            query_params.extend([limit, max(0, offset)])
        cursor = await self._db.execute(sql, query_params)
        rows = await cursor.fetchall()
        await cursor.close()
        return [self._decode(spec, row) for row in rows]

    # ------------------------------------------------------------------
    # Project relations
    # ------------------------------------------------------------------

    async def set_project_categories(
        self, project_id: str, category_ids: Iterable[str]
    ) -> None:
        """Replace the categories attached to a project."""

        unique_ids = list(dict.fromkeys(category_ids))
        async with self._write_lock:
            try:
                await self._db.execute(
                    "DELETE FROM project_categories WHERE project_id = ?",
                    (project_id,),
                )
                if unique_ids:
                    await self._db.executemany(
                        "INSERT INTO project_categories(project_id, category_id) VALUES (?, ?)",
                        [(project_id, category_id) for category_id in unique_ids],
                    )
            except aiosqlite.IntegrityError as exc:
                await self._db.rollback()
                raise _translate_integrity_error(exc) from exc
            await self._db.commit()

    async def get_categories_for_projects(
        self, project_ids: Iterable[str]
    ) -> dict[str, list[Record]]:
        """Return categories keyed by project id."""

        ids = list(dict.fromkeys(project_ids))
        if not ids:
            return {}
        placeholders = ",".join("?" for _ in ids)
        cursor = await self._db.execute(
            f"""
            SELECT pc.project_id, c.id, c.name, c.slug
            FROM project_categories AS pc
            JOIN categories AS c ON c.id = pc.category_id
            WHERE pc.project_id IN ({placeholders})
            ORDER BY c.name ASC
            """,
            ids,
        )
        rows = await cursor.fetchall()
        await cursor.close()
        grouped: dict[str, list[Record]] = {project_id: [] for project_id in ids}
        for row in rows:
            grouped[row["project_id"]].append(
                {"id": row["id"], "name": row["name"], "slug": row["slug"]}
            )
        return grouped

    async def add_related_project(self, project_id: str, related_id: str) -> None:
        await self._execute_write(
            "INSERT OR IGNORE INTO related_projects(project_id, related_id) VALUES (?, ?)",
            (project_id, related_id),
        )

    async def remove_related_project(self, project_id: str, related_id: str) -> bool:
        removed = await self._execute_write(
            "DELETE FROM related_projects WHERE project_id = ? AND related_id = ?",
            (project_id, related_id),
        )
        return bool(removed)

    async def get_related_projects(
        self, project_id: str, *, published_only: bool = True, limit: int = 3
    ) -> list[Record]:
        """Return manually related projects."""

        published_clause = "AND p.published_at IS NOT NULL" if published_only else ""
        cursor = await self._db.execute(
            f"""
            SELECT p.*
            FROM related_projects AS r
            JOIN projects AS p ON p.id = r.related_id
            WHERE r.project_id = ? {published_clause}
            ORDER BY p.published_at DESC
            LIMIT ?
            """,
            (project_id, limit),
        )
        rows = await cursor.fetchall()
        await cursor.close()
        spec = self._spec("projects")
        return [self._decode(spec, row) for row in rows]

    async def find_similar_projects(
        self, project_id: str, category_ids: Sequence[str], *, limit: int = 3
    ) -> list[Record]:
        """Return published projects sharing at least one category."""

        if not category_ids:
            return []
        placeholders = ",".join("?" for _ in category_ids)
        return await self.list_records(
            "projects",
            where=(
                "published_at IS NOT NULL AND id != ? AND EXISTS ("
                "SELECT 1 FROM project_categories AS pc "
                f"WHERE pc.project_id = projects.id AND pc.category_id IN ({placeholders}))"
            ),
            params=[project_id, *category_ids],
            order_by="published_at DESC",
            limit=limit,
        )

    async def list_categories_with_counts(self) -> list[Record]:
        cursor = await self._db.execute(
            """
            SELECT c.*, COUNT(pc.project_id) AS project_count
            FROM categories AS c
            LEFT JOIN project_categories AS pc ON pc.category_id = c.id
            GROUP BY c.id
            ORDER BY c.name ASC
            """
        )
        rows = await cursor.fetchall()
        await cursor.close()
        return [dict(row) for row in rows]

    # ------------------------------------------------------------------
    # Admin account and tokens
    # ------------------------------------------------------------------

    async def count_admins(self) -> int:
        return await self.count("admins")

    async def create_first_admin(
        self, *, email: str, name: str, password_hash: str
    ) -> Record:
        """Create the one admin account.

        The ``singleton`` unique column makes a second insert fail at the
        store layer even when two requests pass the count check together.
        """

        if await self.count_admins() > 0:
            raise RegistrationClosed("An admin account already exists")
        return await self.create(
            "admins",
            {
                "email": email,
                "name": name,
                "password_hash": password_hash,
                "role": "admin",
            },
        )

    async def add_admin_token(
        self, *, token_hash: str, admin_id: str, expires_at: datetime
    ) -> None:
        await self._execute_write(
            """
            INSERT INTO admin_tokens(token_hash, admin_id, created_at, expires_at)
            VALUES (?, ?, ?, ?)
            """,
            (token_hash, admin_id, utcnow_iso(), to_db_timestamp(expires_at)),
        )

    async def get_admin_for_token(
        self, token_hash: str, *, now: datetime
    ) -> Record | None:
        """Return the admin owning an unexpired token."""

        cursor = await self._db.execute(
            """
            SELECT a.*
            FROM admin_tokens AS t
            JOIN admins AS a ON a.id = t.admin_id
            WHERE t.token_hash = ? AND t.expires_at > ?
            LIMIT 1
            """,
            (token_hash, to_db_timestamp(now)),
        )
        row = await cursor.fetchone()
        await cursor.close()
        if row is None:
            return None
        return self._decode(self._spec("admins"), row)

    async def delete_admin_token(self, token_hash: str) -> bool:
        deleted = await self._execute_write(
            "DELETE FROM admin_tokens WHERE token_hash = ?",
            (token_hash,),
        )
        return bool(deleted)

    async def delete_expired_admin_tokens(self, *, now: datetime) -> int:
        return await self._execute_write(
            "DELETE FROM admin_tokens WHERE expires_at <= ?",
            (to_db_timestamp(now),),
        )

    # ------------------------------------------------------------------
    # Analytics aggregates
    # ------------------------------------------------------------------

    async def top_viewed_resources(
        self, event_type: str, *, since: datetime, limit: int = 5
    ) -> list[tuple[str, int]]:
        """Return ``(resource_id, views)`` pairs, most viewed first."""

        cursor = await self._db.execute(
            """
            SELECT resource_id, COUNT(*) AS views
            FROM analytics
            WHERE type = ? AND resource_id IS NOT NULL AND created_at >= ?
            GROUP BY resource_id
            ORDER BY views DESC
            LIMIT ?
            """,
            (event_type, to_db_timestamp(since), limit),
        )
        rows = await cursor.fetchall()
        await cursor.close()
        return [(row["resource_id"], int(row["views"])) for row in rows]

    async def daily_views(
        self,
        *,
        since: datetime,
        event_type: str | None = None,
        resource_id: str | None = None,
    ) -> list[Record]:
        """Return ``{"date", "views"}`` rows grouped by UTC day."""

        clauses = ["created_at >= ?"]
        params: list[Any] = [to_db_timestamp(since)]
        if event_type is not None:
            clauses.append("type = ?")
            params.append(event_type)
        if resource_id is not None:
            clauses.append("resource_id = ?")
            params.append(resource_id)
        cursor = await self._db.execute(
            f"""
            SELECT substr(created_at, 1, 10) AS date, COUNT(*) AS views
            FROM analytics
            WHERE {' AND '.join(clauses)}
            GROUP BY date
            ORDER BY date ASC
            """,
            params,
        )
        rows = await cursor.fetchall()
        await cursor.close()
        return [{"date": row["date"], "views": int(row["views"])} for row in rows]

    async def monthly_created(self, table: str, *, since: datetime) -> list[Record]:
        """Return ``{"month", "count"}`` rows of records created per month."""

        self._spec(table)
        cursor = await self._db.execute(
            f"""
            SELECT substr(created_at, 1, 7) AS month, COUNT(*) AS count
            FROM {table}
            WHERE created_at >= ?
            GROUP BY month
            ORDER BY month DESC
            """,
            (to_db_timestamp(since),),
        )
        rows = await cursor.fetchall()
        await cursor.close()
        return [{"month": row["month"], "count": int(row["count"])} for row in rows]


__all__ = ["ContentRepository", "Record", "TABLES", "TableSpec", "to_db_timestamp", "utcnow_iso"]
