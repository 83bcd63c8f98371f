"""Database repository for polling account data."""

from __future__ import annotations

from datetime import datetime, timezone

from psycopg import errors
from psycopg.rows import tuple_row
from psycopg_pool import ConnectionPool

from schemas import AuditEvent

from .domain.contracts import DuplicateAccountError
from .domain.user import Address, User

_USER_COLUMNS = "username, email, password_hash, city, country, enabled, account_locked, created_at"


class UserRepository:
    """Postgres-backed account persistence.

    Uniqueness of ``username`` and ``email`` is enforced by table constraints,
    so concurrent registrations cannot both insert.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool

    def exists_by_email(self, email: str) -> bool:
        return self._exists("SELECT 1 FROM users WHERE lower(email) = lower(%s)", email)

    def exists_by_username(self, username: str) -> bool:
        return self._exists("SELECT 1 FROM users WHERE username = %s", username)

    def _exists(self, query: str, value: str) -> bool:
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(query, (value,))
                return cur.fetchone() is not None

    def find_by_username(self, username: str) -> User | None:
        """Fetch a user by username or return ``None``."""
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    f"SELECT {_USER_COLUMNS} FROM users WHERE username = %s",
                    (username,),
                )
                row = cur.fetchone()
                if not row:
                    return None
        return self._map_record(row)

    def save(self, user: User) -> User:
        """Insert a new user or update the mutable columns of an existing one."""
        if user.is_new:
            return self._insert(user)
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    UPDATE users
                    SET password_hash = %s, city = %s, country = %s,
                        enabled = %s, account_locked = %s, updated_at = NOW()
                    WHERE username = %s
                    """,
                    (
                        user.password_hash,
                        user.address.city,
                        user.address.country,
                        user.enabled,
                        user.account_locked,
                        user.username,
                    ),
                )
                conn.commit()
        return user

    def _insert(self, user: User) -> User:
        now = datetime.now(timezone.utc)
        try:
            with self._pool.connection() as conn:
                with conn.cursor(row_factory=tuple_row) as cur:
                    cur.execute(
                        f"""
                        INSERT INTO users ({_USER_COLUMNS}, updated_at)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
                        RETURNING {_USER_COLUMNS}
                        """,
                        (
                            user.username,
                            user.email,
                            user.password_hash,
                            user.address.city,
                            user.address.country,
                            user.enabled,
                            user.account_locked,
                            now,
                            now,
                        ),
                    )
                    row = cur.fetchone()
                    conn.commit()
        except errors.UniqueViolation as exc:
            constraint = (exc.diag.constraint_name or "").lower()
            raise DuplicateAccountError("email" if "email" in constraint else "username") from exc
        return self._map_record(row)

    def enable(self, username: str) -> bool:
        """Atomically enable and unlock a pending account.

        Returns ``False`` when no pending row matched, i.e. the account was
        already enabled or does not exist.
        """
        with self._pool.connection() as conn:
            with conn.cursor(row_factory=tuple_row) as cur:
                cur.execute(
                    """
                    UPDATE users
                    SET enabled = TRUE, account_locked = FALSE, updated_at = NOW()
                    WHERE username = %s AND enabled = FALSE
                    RETURNING username
                    """,
                    (username,),
                )
                row = cur.fetchone()
                conn.commit()
        return row is not None

    def _map_record(self, row: tuple) -> User:
        """Convert a raw database tuple into the domain ``User`` dataclass."""
        return User(
            username=row[0],
            email=row[1],
            password_hash=row[2],
            address=Address(city=row[3], country=row[4]),
            enabled=row[5],
            account_locked=row[6],
            created_at=row[7],
        )

    def write_audit_event(self, event: AuditEvent) -> None:
        """Record an audit trail entry capturing account lifecycle activity."""
        with self._pool.connection() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO auth_audit_log (severity, message, origin, created_at)
                    VALUES (%s, %s, %s, %s)
                    """,
                    (event.severity, event.message, event.origin, event.occurred_at),
                )
                conn.commit()
