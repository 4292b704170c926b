"""
Business logic for users.

``UserService`` stores accounts in the ``users`` table and covers
registration, the one‑time admin bootstrap, login bookkeeping and the
admin management operations (update, activate/deactivate, delete,
password reset).  Role checks that depend on the caller are performed
at the endpoint level; invariants about the admin account itself
(it cannot be deactivated, deleted or have its password reset here)
are enforced in this service.
"""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from passport_posts_api.app.core.db import get_connection, utc_now
from passport_posts_api.app.core.errors import Conflict, NotFound, Unauthenticated, ValidationError
from passport_posts_api.app.core.security import ROLE_ADMIN, ROLE_USER, hash_password, verify_password
from passport_posts_api.app.schemas.user import UserCreate, UserRead
from passport_posts_api.app.services.audit_service import AuditService


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

_USER_COLUMNS = (
    "id, full_name, email, mobile_number, role, is_active, "
    "last_login, last_logout, created_at, updated_at"
)


def _row_to_user(row: sqlite3.Row) -> UserRead:
    return UserRead(
        id=row["id"],
        full_name=row["full_name"],
        email=row["email"],
        mobile_number=row["mobile_number"],
        role=row["role"],
        is_active=bool(row["is_active"]),
        last_login=row["last_login"],
        last_logout=row["last_logout"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


class UserService:
    """Сервис для работы с пользователями."""

    @classmethod
    async def create_user(cls, data: UserCreate, role: str = ROLE_USER) -> UserRead:
        """Create a new account with the given role.

        Raises ``Conflict`` when the e‑mail is already registered.
        """
        logger.info("Registering %s %s", role, data.email)
        email = data.email.strip().lower()
        now = utc_now()
        conn = get_connection()
        try:
            cursor = conn.cursor()
            try:
                cursor.execute(
                    "INSERT INTO users (full_name, email, password, mobile_number, role, is_active, created_at, updated_at) "
                    "VALUES (?, ?, ?, ?, ?, 1, ?, ?)",
                    (data.full_name, email, hash_password(data.password), data.mobile_number, role, now, now),
                )
            except sqlite3.IntegrityError:
                conn.rollback()
                raise Conflict(f"User with email {email} already exists")
            user_id = cursor.lastrowid
            conn.commit()
            row = cursor.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        await AuditService.record(
            user_id=None,
            action="create",
            object_type="user",
            object_id=user_id,
            details={"email": email, "role": role},
        )
        return _row_to_user(row)

    @classmethod
    async def create_admin(cls, data: UserCreate) -> UserRead:
        """Create the single admin account.

        Only one admin may exist; the check happens here at creation time
        and nowhere else.
        """
        conn = get_connection()
        try:
            exists = conn.execute("SELECT id FROM users WHERE role = ? LIMIT 1", (ROLE_ADMIN,)).fetchone()
        finally:
            conn.close()
        if exists:
            raise Conflict("Admin already exists, only one admin is allowed")
        return await cls.create_user(data, role=ROLE_ADMIN)

    @classmethod
    async def authenticate(cls, email: str, password: str) -> Optional[UserRead]:
        """Return the user when the credentials match, otherwise ``None``.

        A successful login stamps ``last_login``.  Raises ``Unauthenticated``
        for a deactivated account.
        """
        conn = get_connection()
        try:
            cursor = conn.cursor()
            row = cursor.execute(
                "SELECT id, password, is_active FROM users WHERE email = ?",
                (email.strip().lower(),),
            ).fetchone()
            if not row or not verify_password(password, row["password"]):
                return None
            if not row["is_active"]:
                raise Unauthenticated("Your account has been deactivated")
            cursor.execute(
                "UPDATE users SET last_login = ? WHERE id = ?",
                (utc_now(), row["id"]),
            )
            conn.commit()
            updated = cursor.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (row["id"],)).fetchone()
            return _row_to_user(updated)
        finally:
            conn.close()

    @classmethod
    async def record_logout(cls, user_id: int) -> UserRead:
        conn = get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute("UPDATE users SET last_logout = ? WHERE id = ?", (utc_now(), user_id))
            conn.commit()
            row = cursor.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFound("User not found")
        return _row_to_user(row)

    @classmethod
    async def list_users(cls, role: str = ROLE_USER) -> List[UserRead]:
        """Return all users with ``role``, newest first."""
        conn = get_connection()
        try:
            rows = conn.execute(
                f"SELECT {_USER_COLUMNS} FROM users WHERE role = ? ORDER BY created_at DESC, id DESC",
                (role,),
            ).fetchall()
            return [_row_to_user(row) for row in rows]
        finally:
            conn.close()

    @classmethod
    async def get_user(cls, user_id: int) -> UserRead:
        """Retrieve a user by ID.  Raises ``NotFound`` if absent."""
        conn = get_connection()
        try:
            row = conn.execute(f"SELECT {_USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFound(f"User not found with id of {user_id}")
        return _row_to_user(row)

    @classmethod
    async def update_user(cls, user_id: int, updates: Dict[str, Any], acting_user_id: Optional[int] = None) -> UserRead:
        """Update profile fields and/or the active flag.

        ``updates`` may contain ``full_name``, ``mobile_number``,
        ``is_active`` and ``role``.  Promoting anyone to admin is refused.
        """
        if updates.get("role") == ROLE_ADMIN:
            raise ValidationError("Cannot update user role to admin")
        allowed = {k: v for k, v in updates.items() if k in {"full_name", "mobile_number", "is_active"}}
        user = await cls.get_user(user_id)
        if allowed:
            fields = []
            values: List[Any] = []
            for key, value in allowed.items():
                fields.append(f"{key} = ?")
                # Convert booleans to int for SQLite
                values.append(int(value) if isinstance(value, bool) else value)
            values.extend([utc_now(), user_id])
            conn = get_connection()
            try:
                conn.execute(
                    f"UPDATE users SET {', '.join(fields)}, updated_at = ? WHERE id = ?",
                    tuple(values),
                )
                conn.commit()
            finally:
                conn.close()
            await AuditService.record(
                user_id=acting_user_id,
                action="update",
                object_type="user",
                object_id=user_id,
                details=allowed,
            )
            user = await cls.get_user(user_id)
        return user

    @classmethod
    async def toggle_status(cls, user_id: int, acting_user_id: Optional[int] = None) -> UserRead:
        """Flip ``is_active`` of a regular user."""
        user = await cls.get_user(user_id)
        if user.role == ROLE_ADMIN:
            raise ValidationError("Cannot modify admin status")
        return await cls.update_user(user_id, {"is_active": not user.is_active}, acting_user_id)

    @classmethod
    async def delete_user(cls, user_id: int, acting_user_id: Optional[int] = None) -> None:
        """Delete a regular user account.

        The admin account cannot be deleted.  Posts created by the user
        are kept and render their author as ``null``.
        """
        user = await cls.get_user(user_id)
        if user.role == ROLE_ADMIN:
            raise ValidationError("Cannot delete admin user")
        conn = get_connection()
        try:
            conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            conn.commit()
        finally:
            conn.close()
        await AuditService.record(
            user_id=acting_user_id,
            action="delete",
            object_type="user",
            object_id=user_id,
            details={"email": user.email},
        )

    @classmethod
    def _store_password(cls, user_id: int, new_password: str) -> None:
        conn = get_connection()
        try:
            conn.execute(
                "UPDATE users SET password = ?, updated_at = ? WHERE id = ?",
                (hash_password(new_password), utc_now(), user_id),
            )
            conn.commit()
        finally:
            conn.close()

    @classmethod
    async def reset_password(cls, user_id: int, new_password: Optional[str]) -> None:
        """Admin reset of a regular user's password."""
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Password should be at least 6 characters")
        user = await cls.get_user(user_id)
        if user.role == ROLE_ADMIN:
            raise ValidationError("Cannot reset admin password through this route")
        cls._store_password(user_id, new_password)
        logger.info("Password reset for user %s", user_id)

    @classmethod
    async def change_password(
        cls,
        user_id: int,
        current_password: Optional[str],
        new_password: Optional[str],
        verify_current: bool = True,
    ) -> None:
        """Change a password, checking the current one unless ``verify_current`` is off (admin)."""
        conn = get_connection()
        try:
            row = conn.execute("SELECT id, password FROM users WHERE id = ?", (user_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            raise NotFound("User not found")
        if verify_current and not verify_password(current_password or "", row["password"]):
            raise ValidationError("Current password is incorrect")
        if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
            raise ValidationError("Password must be at least 6 characters long")
        cls._store_password(user_id, new_password)
        logger.info("Password changed for user %s", user_id)

