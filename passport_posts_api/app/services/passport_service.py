"""
Business logic for passport posts.

A post is stored as a single row whose ``passports`` column holds the
ordered list of embedded entries as JSON.  All mutations follow the
same read‑modify‑write pattern: fetch the whole post, change the list
in memory, write the whole row back.  There is no locking: two writers
racing on one post resolve as last writer wins.  Each fetch/mutate/save
sequence runs synchronously on one connection, without an ``await``
in between, so sequences never interleave inside a single event loop.

Rules for the embedded entries:

* every entry gets a fresh ``_id`` and ``postDate`` when it is created;
* ``postDate`` and ``_id`` of an existing entry survive any update;
* a post is never left with an empty list: removing its last entry
  deletes the post.

Entries are found by scanning every post in storage order; there is no
secondary index from entry id to post id.
"""

import json
import logging
import sqlite3
import uuid
from typing import Any, Dict, Iterable, List, Optional, Tuple

from passport_posts_api.app.core.db import get_connection, utc_now
from passport_posts_api.app.core.errors import Forbidden, NotFound, ValidationError
from passport_posts_api.app.core.security import is_admin
from passport_posts_api.app.schemas.passport import (
    BatchDeleteError,
    BatchDeleteResponse,
    PassportDeleteResult,
    PassportEntry,
    PassportEntryIn,
    PassportLookup,
    PassportPostRead,
    PassportUpdateResult,
    UserRef,
)
from passport_posts_api.app.services.archive_service import ArchiveService
from passport_posts_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)

_POST_COLUMNS = "id, created_by, updated_by, passports, created_at, updated_at"

_UPDATE_POST_DENIED = "Not authorized to update this post"
_UPDATE_PASSPORT_DENIED = "Not authorized to update this passport"


def new_id() -> str:
    return uuid.uuid4().hex


def load_entries(row: sqlite3.Row) -> List[Dict[str, Any]]:
    return json.loads(row["passports"])


def build_entry(data: PassportEntryIn, entry_id: str, post_date: str) -> Dict[str, Any]:
    """Stored form of ``data`` under the given server‑owned fields.

    Every client field is taken from ``data``; optional fields it leaves
    out end up as ``null``.
    """
    entry = PassportEntry(
        id=entry_id,
        passport_number=data.passport_number,
        link=data.link,
        issued_country=data.issued_country,
        city=data.city,
        slip_no=data.slip_no,
        other_details=data.other_details,
        post_date=post_date,
    )
    return entry.model_dump(by_alias=True, mode="json")


def reconcile_entries(
    existing: List[Dict[str, Any]],
    supplied: List[PassportEntryIn],
    now: str,
) -> List[Dict[str, Any]]:
    """Merge a full replacement list into the stored entries of a post.

    A supplied entry whose id matches a stored one keeps that id and its
    ``postDate``; anything else is a new entry stamped with ``now``.
    Stored entries missing from ``supplied`` are dropped.  A stored id
    is matched at most once so a repeated id cannot duplicate an entry.
    """
    post_dates = {entry["_id"]: entry["postDate"] for entry in existing}
    result = []
    for data in supplied:
        if data.id is not None and data.id in post_dates:
            result.append(build_entry(data, data.id, post_dates.pop(data.id)))
        else:
            result.append(build_entry(data, new_id(), now))
    return result


def locate_entry(rows: Iterable[sqlite3.Row], passport_id: str) -> Tuple[sqlite3.Row, List[Dict[str, Any]], int]:
    """Find the post containing ``passport_id``.

    Posts are scanned in the order given; the first match wins.  Returns
    the post row, its decoded entries and the entry index.  Raises
    ``NotFound`` when no post holds the id.
    """
    for row in rows:
        entries = load_entries(row)
        for index, entry in enumerate(entries):
            if entry.get("_id") == passport_id:
                return row, entries, index
    raise NotFound(f"Passport not found with id {passport_id}")


def _check_owner(row: sqlite3.Row, current_user: Dict[str, Any], message: str) -> None:
    if row["created_by"] != current_user.get("user_id") and not is_admin(current_user):
        raise Forbidden(message)


class PassportService:
    """Create, read, update and delete passport posts and their entries."""

    # ------------------------------------------------------------------
    # Storage helpers
    # ------------------------------------------------------------------

    @classmethod
    def _fetch_post(cls, conn: sqlite3.Connection, post_id: str) -> sqlite3.Row:
        row = conn.execute(f"SELECT {_POST_COLUMNS} FROM passport_posts WHERE id = ?", (post_id,)).fetchone()
        if not row:
            raise NotFound(f"Post not found with id {post_id}")
        return row

    @classmethod
    def _scan(cls, conn: sqlite3.Connection) -> List[sqlite3.Row]:
        # rowid order is insertion order, which keeps lookups deterministic.
        return conn.execute(f"SELECT {_POST_COLUMNS} FROM passport_posts ORDER BY rowid").fetchall()

    @classmethod
    def _save_entries(
        cls,
        conn: sqlite3.Connection,
        post_id: str,
        entries: List[Dict[str, Any]],
        user_id: Optional[int],
    ) -> None:
        conn.execute(
            "UPDATE passport_posts SET passports = ?, updated_by = ?, updated_at = ? WHERE id = ?",
            (json.dumps(entries), user_id, utc_now(), post_id),
        )

    @classmethod
    def populate(cls, conn: sqlite3.Connection, rows: List[sqlite3.Row]) -> List[PassportPostRead]:
        """Turn rows into ``PassportPostRead`` with owner/editor references resolved."""
        user_ids = {row["created_by"] for row in rows} | {row["updated_by"] for row in rows if row["updated_by"]}
        users: Dict[int, UserRef] = {}
        if user_ids:
            placeholders = ", ".join("?" for _ in user_ids)
            for user in conn.execute(
                f"SELECT id, full_name, email FROM users WHERE id IN ({placeholders})",
                tuple(user_ids),
            ).fetchall():
                users[user["id"]] = UserRef(id=user["id"], full_name=user["full_name"], email=user["email"])
        return [
            PassportPostRead(
                id=row["id"],
                passports=[PassportEntry.model_validate(entry) for entry in load_entries(row)],
                created_by=users.get(row["created_by"]),
                updated_by=users.get(row["updated_by"]) if row["updated_by"] else None,
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    @classmethod
    def _read_post(cls, conn: sqlite3.Connection, post_id: str) -> PassportPostRead:
        return cls.populate(conn, [cls._fetch_post(conn, post_id)])[0]

    # ------------------------------------------------------------------
    # Posts
    # ------------------------------------------------------------------

    @classmethod
    async def create_post(cls, entries: List[PassportEntryIn], current_user: Dict[str, Any]) -> PassportPostRead:
        """Create a post owned by the caller.

        Every entry gets a new id and ``postDate`` set to now, whatever
        the client sent.
        """
        now = utc_now()
        post_id = new_id()
        stored = [build_entry(data, new_id(), now) for data in entries]
        conn = get_connection()
        try:
            conn.execute(
                "INSERT INTO passport_posts (id, created_by, updated_by, passports, created_at, updated_at) "
                "VALUES (?, ?, NULL, ?, ?, ?)",
                (post_id, current_user["user_id"], json.dumps(stored), now, now),
            )
            conn.commit()
            post = cls._read_post(conn, post_id)
        finally:
            conn.close()
        logger.info("User %s created passport post %s with %d passports", current_user["user_id"], post_id, len(stored))
        await AuditService.record(
            user_id=current_user["user_id"],
            action="create",
            object_type="passport_post",
            object_id=post_id,
            details={"passports": [entry["_id"] for entry in stored]},
        )
        return post

    @classmethod
    async def list_posts(cls) -> List[PassportPostRead]:
        """Return every post, newest first.

        No ownership filtering is applied here, unlike the detail view.
        """
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_POST_COLUMNS} FROM passport_posts ORDER BY created_at DESC, rowid DESC"
            ).fetchall()
            return cls.populate(conn, rows)
        finally:
            conn.close()

    @classmethod
    async def get_post(cls, post_id: str, current_user: Dict[str, Any]) -> PassportPostRead:
        conn = get_connection()
        try:
            row = cls._fetch_post(conn, post_id)
            _check_owner(row, current_user, "Not authorized to access this post")
            return cls.populate(conn, [row])[0]
        finally:
            conn.close()

    @classmethod
    async def check_post_update(cls, post_id: str, current_user: Dict[str, Any]) -> None:
        """Raise ``NotFound`` or ``Forbidden`` for an update, before its body is read."""
        conn = get_connection()
        try:
            _check_owner(cls._fetch_post(conn, post_id), current_user, _UPDATE_POST_DENIED)
        finally:
            conn.close()

    @classmethod
    async def check_entry_update(cls, passport_id: str, current_user: Dict[str, Any]) -> None:
        conn = get_connection()
        try:
            row, _, _ = locate_entry(cls._scan(conn), passport_id)
            _check_owner(row, current_user, _UPDATE_PASSPORT_DENIED)
        finally:
            conn.close()

    @classmethod
    async def update_post(
        cls,
        post_id: str,
        entries: List[PassportEntryIn],
        current_user: Dict[str, Any],
    ) -> PassportPostRead:
        """Replace the entries of a post, preserving ids and ``postDate`` of known entries."""
        conn = get_connection()
        try:
            row = cls._fetch_post(conn, post_id)
            _check_owner(row, current_user, _UPDATE_POST_DENIED)
            merged = reconcile_entries(load_entries(row), entries, utc_now())
            cls._save_entries(conn, post_id, merged, current_user["user_id"])
            conn.commit()
            post = cls._read_post(conn, post_id)
        finally:
            conn.close()
        await AuditService.record(
            user_id=current_user["user_id"],
            action="update",
            object_type="passport_post",
            object_id=post_id,
            details={"passports": [entry["_id"] for entry in merged]},
        )
        return post

    @classmethod
    async def delete_post(cls, post_id: str, current_user: Dict[str, Any]) -> None:
        """Delete a whole post after archiving its content.

        Ownership is not checked here.
        """
        conn = get_connection()
        try:
            row = cls._fetch_post(conn, post_id)
            ArchiveService.record_deleted(
                cls.populate(conn, [row])[0].model_dump(by_alias=True, mode="json"),
                current_user["user_id"],
            )
            conn.execute("DELETE FROM passport_posts WHERE id = ?", (post_id,))
            conn.commit()
        finally:
            conn.close()
        logger.info("User %s deleted passport post %s", current_user["user_id"], post_id)
        await AuditService.record(
            user_id=current_user["user_id"],
            action="delete",
            object_type="passport_post",
            object_id=post_id,
        )

    @classmethod
    async def posts_by_country(cls, country: str, current_user: Dict[str, Any]) -> List[PassportPostRead]:
        """Posts with an entry whose ``issuedCountry`` contains ``country`` (case‑insensitive).

        Non‑admin callers only see their own posts.  The name is matched as
        given; a blank name is rejected.
        """
        if not country.strip():
            raise ValidationError("Please provide a country name")
        needle = country.lower()
        query = f"SELECT {_POST_COLUMNS} FROM passport_posts"
        params: Tuple[Any, ...] = ()
        if not is_admin(current_user):
            query += " WHERE created_by = ?"
            params = (current_user["user_id"],)
        query += " ORDER BY created_at DESC, rowid DESC"
        conn = get_connection()
        try:
            rows = [
                row
                for row in conn.execute(query, params).fetchall()
                if any(needle in (entry.get("issuedCountry") or "").lower() for entry in load_entries(row))
            ]
            return cls.populate(conn, rows)
        finally:
            conn.close()

    # ------------------------------------------------------------------
    # Single entries
    # ------------------------------------------------------------------

    @classmethod
    async def get_entry(cls, passport_id: str, current_user: Dict[str, Any]) -> PassportLookup:
        conn = get_connection()
        try:
            row, entries, index = locate_entry(cls._scan(conn), passport_id)
            _check_owner(row, current_user, "Not authorized to access this passport")
            post = cls.populate(conn, [row])[0]
        finally:
            conn.close()
        return PassportLookup(passport=post.passports[index], created_by=post.created_by, post_id=post.id)

    @classmethod
    async def update_entry(
        cls,
        passport_id: str,
        data: PassportEntryIn,
        current_user: Dict[str, Any],
    ) -> PassportUpdateResult:
        """Replace one entry in place.

        ``_id`` and ``postDate`` are kept; every other field comes from
        ``data``, so optional fields it omits are cleared.
        """
        conn = get_connection()
        try:
            row, entries, index = locate_entry(cls._scan(conn), passport_id)
            _check_owner(row, current_user, _UPDATE_PASSPORT_DENIED)
            original = entries[index]
            entries[index] = build_entry(data, original["_id"], original["postDate"])
            cls._save_entries(conn, row["id"], entries, current_user["user_id"])
            conn.commit()
            post = cls._read_post(conn, row["id"])
        finally:
            conn.close()
        await AuditService.record(
            user_id=current_user["user_id"],
            action="update",
            object_type="passport",
            object_id=passport_id,
            details={"postId": post.id},
        )
        return PassportUpdateResult(post=post, updated_passport=post.passports[index])

    @classmethod
    def _remove_entry(cls, passport_id: str, user_id: Optional[int]) -> Tuple[str, bool]:
        """Remove one entry, collapsing the post when it was the last one.

        The removed entry is archived first.  Returns the parent post id
        and whether the post itself was deleted.
        """
        conn = get_connection()
        try:
            row, entries, index = locate_entry(cls._scan(conn), passport_id)
            ArchiveService.record_deleted(entries[index], user_id)
            if len(entries) == 1:
                conn.execute("DELETE FROM passport_posts WHERE id = ?", (row["id"],))
                collapsed = True
            else:
                del entries[index]
                cls._save_entries(conn, row["id"], entries, user_id)
                collapsed = False
            conn.commit()
        finally:
            conn.close()
        if collapsed:
            logger.info("Deleted post %s together with its only passport %s", row["id"], passport_id)
        else:
            logger.info("Removed passport %s from post %s", passport_id, row["id"])
        return row["id"], collapsed

    @classmethod
    async def delete_entry(cls, passport_id: str, current_user: Dict[str, Any]) -> PassportDeleteResult:
        post_id, collapsed = cls._remove_entry(passport_id, current_user["user_id"])
        await AuditService.record(
            user_id=current_user["user_id"],
            action="delete",
            object_type="passport",
            object_id=passport_id,
            details={"postId": post_id, "postDeleted": collapsed},
        )
        return PassportDeleteResult(deleted_passport=passport_id, post_id=post_id)

    @classmethod
    async def delete_entries(cls, passport_ids: List[str], current_user: Dict[str, Any]) -> BatchDeleteResponse:
        """Delete each id independently.

        A failing id is reported in ``errors`` and does not stop the
        remaining ones.  Posts are re‑read for every id.
        """
        deleted: List[str] = []
        errors: List[BatchDeleteError] = []
        for passport_id in passport_ids:
            try:
                post_id, collapsed = cls._remove_entry(passport_id, current_user["user_id"])
            except NotFound:
                errors.append(BatchDeleteError(id=passport_id, message="Passport not found"))
                continue
            except Exception as exc:
                logger.exception("Error processing passport ID %s", passport_id)
                errors.append(BatchDeleteError(id=passport_id, message=str(exc)))
                continue
            deleted.append(passport_id)
            await AuditService.record(
                user_id=current_user["user_id"],
                action="delete",
                object_type="passport",
                object_id=passport_id,
                details={"postId": post_id, "postDeleted": collapsed, "batch": True},
            )
        return BatchDeleteResponse(
            message=f"{len(deleted)} passports deleted successfully",
            count=len(deleted),
            deleted=deleted,
            errors=errors,
        )
