import sqlite3
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from src.adapters.clock import SystemClock
from src.domain.entities import (
    NOINDEX,
    PUBLISHED,
    Author,
    ContentSource,
    ImageRef,
    Page,
    Post,
    TaxonomyName,
    Term,
)
from src.domain.filters import FieldFilter, MatchAll, MatchNothing, TaxonomyFilter
from src.ports.clock import ClockPort
from src.ports.content import ContentQuery

LANGUAGE_COLUMNS = frozenset({"language"})


# Helper to convert sqlite rows to dicts
def dict_factory(cursor: sqlite3.Cursor, row: Any) -> dict[str, Any]:
    d = {}
    for idx, col in enumerate(cursor.description):
        d[col[0]] = row[idx]
    return d


def _to_db_time(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat()


def _from_db_time(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _placeholders(count: int) -> str:
    return ",".join("?" * count)


class _SQLiteRepo:
    def __init__(self, db_path: str):
        self.db_path = db_path

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = dict_factory
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn


class SQLiteContentStore(_SQLiteRepo):
    def __init__(self, db_path: str, post_kind: str = "post"):
        super().__init__(db_path)
        self.post_kind = post_kind

    # --- Writes (used by seeding and the content store's own tooling) ---

    def save(self, item: ContentSource) -> ContentSource:
        image = item.featured_image
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO content (
                    id, kind, title, slug, url, edit_url, status, parent_id, menu_order,
                    language, translation_group, modified_at, robots_index, priority,
                    changefreq, author_id, content_html, featured_image_url,
                    featured_image_title
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    kind=excluded.kind,
                    title=excluded.title,
                    slug=excluded.slug,
                    url=excluded.url,
                    edit_url=excluded.edit_url,
                    status=excluded.status,
                    parent_id=excluded.parent_id,
                    menu_order=excluded.menu_order,
                    language=excluded.language,
                    translation_group=excluded.translation_group,
                    modified_at=excluded.modified_at,
                    robots_index=excluded.robots_index,
                    priority=excluded.priority,
                    changefreq=excluded.changefreq,
                    author_id=excluded.author_id,
                    content_html=excluded.content_html,
                    featured_image_url=excluded.featured_image_url,
                    featured_image_title=excluded.featured_image_title
            """,
                (
                    item.id,
                    item.kind,
                    item.title,
                    item.slug,
                    item.url,
                    item.edit_url,
                    item.status,
                    item.parent_id if isinstance(item, Page) else 0,
                    item.menu_order if isinstance(item, Page) else 0,
                    item.language,
                    item.translation_group,
                    _to_db_time(item.modified_at),
                    item.robots_index,
                    item.priority,
                    item.changefreq,
                    item.author_id,
                    item.content_html,
                    image.url if image else None,
                    image.title if image else "",
                ),
            )
            conn.execute("DELETE FROM content_terms WHERE content_id = ?", (item.id,))
            if isinstance(item, Post):
                conn.executemany(
                    "INSERT INTO content_terms (content_id, term_id) VALUES (?, ?)",
                    [(item.id, term_id) for term_id in sorted(item.category_ids | item.tag_ids)],
                )
            conn.commit()
            return item
        finally:
            conn.close()

    def save_author(self, author: Author) -> Author:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO authors (id, display_name, slug, url, edit_url)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    display_name=excluded.display_name,
                    slug=excluded.slug,
                    url=excluded.url,
                    edit_url=excluded.edit_url
            """,
                (author.id, author.display_name, author.slug, author.url, author.edit_url),
            )
            conn.commit()
            return author
        finally:
            conn.close()

    def delete(self, item_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM content WHERE id = ?", (item_id,))
            conn.commit()
        finally:
            conn.close()

    # --- Reads ---

    def list_published(self, query: ContentQuery) -> list[ContentSource]:
        sql = "SELECT * FROM content WHERE kind = ? AND status = ?"
        params: list[Any] = [query.kind, PUBLISHED]

        if query.exclude_noindex:
            sql += " AND (robots_index IS NULL OR robots_index != ?)"
            params.append(NOINDEX)
        if query.exclude_ids:
            ids = sorted(query.exclude_ids)
            sql += f" AND id NOT IN ({_placeholders(len(ids))})"
            params.extend(ids)

        language = query.language
        if isinstance(language, MatchNothing):
            return []
        if isinstance(language, FieldFilter):
            if language.field not in LANGUAGE_COLUMNS:
                raise ValueError(f"Unsupported language field: {language.field}")
            sql += f" AND {language.field} = ?"
            params.append(language.value)
        elif isinstance(language, TaxonomyFilter):
            term_ids = sorted(language.category_ids)
            if language.tag_id is not None:
                term_ids.append(language.tag_id)
            if not term_ids:
                return []
            sql += (
                " AND id IN (SELECT content_id FROM content_terms"
                f" WHERE term_id IN ({_placeholders(len(term_ids))}))"
            )
            params.extend(term_ids)
        elif not isinstance(language, MatchAll):
            raise ValueError(f"Unsupported language filter: {language!r}")

        sql += " ORDER BY modified_at DESC, id DESC LIMIT ?"
        params.append(query.limit)
        return self._fetch(sql, params)

    def get(self, item_id: int) -> ContentSource | None:
        items = self._fetch("SELECT * FROM content WHERE id = ?", [item_id])
        return items[0] if items else None

    def list_translation_group(self, kind: str, group: str, limit: int) -> list[ContentSource]:
        return self._fetch(
            "SELECT * FROM content WHERE kind = ? AND status = ? AND translation_group = ?"
            " ORDER BY id LIMIT ?",
            [kind, PUBLISHED, group, limit],
        )

    def list_kinds(self) -> list[str]:
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT DISTINCT kind FROM content ORDER BY kind").fetchall()
            return [row["kind"] for row in rows]
        finally:
            conn.close()

    def get_author(self, author_id: int) -> Author | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM authors WHERE id = ?", (author_id,)).fetchone()
            if not row:
                return None
            return Author(
                id=row["id"],
                display_name=row["display_name"],
                url=row["url"],
                slug=row["slug"],
                edit_url=row["edit_url"],
            )
        finally:
            conn.close()

    def save_overrides(self, item_id: int, priority: str, changefreq: str) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "UPDATE content SET priority = ?, changefreq = ? WHERE id = ?",
                (priority, changefreq, item_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def _fetch(self, sql: str, params: list[Any]) -> list[ContentSource]:
        conn = self._get_conn()
        try:
            rows = conn.execute(sql, params).fetchall()
            post_ids = [row["id"] for row in rows if row["kind"] == self.post_kind]
            terms = self._terms_for(conn, post_ids)
            return [self._map_row(row, terms.get(row["id"], {})) for row in rows]
        finally:
            conn.close()

    def _terms_for(
        self, conn: sqlite3.Connection, content_ids: list[int]
    ) -> dict[int, dict[str, set[int]]]:
        if not content_ids:
            return {}
        rows = conn.execute(
            "SELECT ct.content_id, ct.term_id, t.taxonomy FROM content_terms ct"
            " JOIN terms t ON t.id = ct.term_id"
            f" WHERE ct.content_id IN ({_placeholders(len(content_ids))})",
            content_ids,
        ).fetchall()
        result: dict[int, dict[str, set[int]]] = {}
        for row in rows:
            bucket = result.setdefault(row["content_id"], {"category": set(), "tag": set()})
            bucket[row["taxonomy"]].add(row["term_id"])
        return result

    def _map_row(self, row: dict[str, Any], terms: dict[str, set[int]]) -> ContentSource:
        image = (
            ImageRef(url=row["featured_image_url"], title=row["featured_image_title"])
            if row["featured_image_url"]
            else None
        )
        common: dict[str, Any] = {
            "id": row["id"],
            "title": row["title"],
            "url": row["url"],
            "kind": row["kind"],
            "slug": row["slug"],
            "status": row["status"],
            "language": row["language"],
            "translation_group": row["translation_group"],
            "modified_at": _from_db_time(row["modified_at"]),
            "robots_index": row["robots_index"],
            "priority": row["priority"],
            "changefreq": row["changefreq"],
            "author_id": row["author_id"],
            "content_html": row["content_html"],
            "featured_image": image,
            "edit_url": row["edit_url"],
        }
        if row["kind"] == self.post_kind:
            return Post(
                **common,
                category_ids=frozenset(terms.get("category", ())),
                tag_ids=frozenset(terms.get("tag", ())),
            )
        return Page(**common, parent_id=row["parent_id"], menu_order=row["menu_order"])


class SQLiteTaxonomy(_SQLiteRepo):
    def save(self, term: Term) -> Term:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO terms (
                    id, taxonomy, name, slug, url, edit_url, parent_id, priority, changefreq
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT(id) DO UPDATE SET
                    taxonomy=excluded.taxonomy,
                    name=excluded.name,
                    slug=excluded.slug,
                    url=excluded.url,
                    edit_url=excluded.edit_url,
                    parent_id=excluded.parent_id,
                    priority=excluded.priority,
                    changefreq=excluded.changefreq
            """,
                (
                    term.id,
                    term.taxonomy,
                    term.name,
                    term.slug,
                    term.url,
                    term.edit_url,
                    term.parent_id,
                    term.priority,
                    term.changefreq,
                ),
            )
            conn.commit()
            return term
        finally:
            conn.close()

    def _one(self, sql: str, params: Iterable[Any]) -> Term | None:
        conn = self._get_conn()
        try:
            row = conn.execute(sql, tuple(params)).fetchone()
            return self._map_row(row) if row else None
        finally:
            conn.close()

    def get_term(self, term_id: int) -> Term | None:
        return self._one("SELECT * FROM terms WHERE id = ?", (term_id,))

    def term_by_slug(self, taxonomy: TaxonomyName, slug: str) -> Term | None:
        return self._one(
            "SELECT * FROM terms WHERE taxonomy = ? AND slug = ? ORDER BY id LIMIT 1",
            (taxonomy, slug),
        )

    def term_by_name(self, taxonomy: TaxonomyName, name: str) -> Term | None:
        return self._one(
            "SELECT * FROM terms WHERE taxonomy = ? AND name = ? ORDER BY id LIMIT 1",
            (taxonomy, name),
        )

    def descendants_of(self, taxonomy: TaxonomyName, term_id: int, limit: int) -> list[int]:
        conn = self._get_conn()
        try:
            rows = conn.execute(
                """
                WITH RECURSIVE tree(id) AS (
                    SELECT id FROM terms WHERE taxonomy = ? AND parent_id = ?
                    UNION
                    SELECT t.id FROM terms t JOIN tree ON t.parent_id = tree.id
                    WHERE t.taxonomy = ?
                )
                SELECT id FROM tree WHERE id != ? LIMIT ?
            """,
                (taxonomy, term_id, taxonomy, term_id, limit),
            ).fetchall()
            return [row["id"] for row in rows]
        finally:
            conn.close()

    def list_terms(
        self,
        taxonomy: TaxonomyName,
        limit: int,
        include: frozenset[int] | None = None,
        top_level_only: bool = False,
    ) -> list[Term]:
        sql = "SELECT * FROM terms WHERE taxonomy = ?"
        params: list[Any] = [taxonomy]
        if include is not None:
            if not include:
                return []
            ids = sorted(include)
            sql += f" AND id IN ({_placeholders(len(ids))})"
            params.extend(ids)
        if top_level_only:
            sql += " AND parent_id = 0"
        sql += " ORDER BY LOWER(name), id LIMIT ?"
        params.append(limit)

        conn = self._get_conn()
        try:
            return [self._map_row(row) for row in conn.execute(sql, params).fetchall()]
        finally:
            conn.close()

    def save_term_overrides(self, term_id: int, priority: str, changefreq: str) -> bool:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "UPDATE terms SET priority = ?, changefreq = ? WHERE id = ?",
                (priority, changefreq, term_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def _map_row(self, row: dict[str, Any]) -> Term:
        return Term(
            id=row["id"],
            taxonomy=row["taxonomy"],
            name=row["name"],
            slug=row["slug"],
            url=row["url"],
            parent_id=row["parent_id"],
            priority=row["priority"],
            changefreq=row["changefreq"],
            edit_url=row["edit_url"],
        )


class SQLiteKeyValueStore(_SQLiteRepo):
    def __init__(self, db_path: str, clock: ClockPort | None = None):
        super().__init__(db_path)
        self._clock = clock or SystemClock()

    def get(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT value, expires_at FROM kv_store WHERE key = ?", (key,)
            ).fetchone()
            if not row:
                return None
            expires_at = _from_db_time(row["expires_at"])
            if expires_at is not None and self._clock.now_utc() >= expires_at:
                conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                conn.commit()
                return None
            return row["value"]
        finally:
            conn.close()

    def set(self, key: str, value: str, expires_at: datetime | None = None) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    expires_at=excluded.expires_at
            """,
                (key, value, _to_db_time(expires_at)),
            )
            conn.commit()
        finally:
            conn.close()

    def delete(self, key: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    def delete_prefix(self, prefix: str) -> int:
        conn = self._get_conn()
        try:
            cursor = conn.execute(
                "DELETE FROM kv_store WHERE substr(key, 1, ?) = ?", (len(prefix), prefix)
            )
            conn.commit()
            return cursor.rowcount
        finally:
            conn.close()
