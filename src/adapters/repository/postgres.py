"""
PostgreSQL repository adapters - Implement AccountDirectory and TokenStore.

This module provides the PostgreSQL implementations of the domain's
persistence ports using psycopg3 with raw SQL.

Concurrency Design
------------------
No in-process locks are used. Every invariant is held by a single SQL
statement (or one transaction) and the table constraints:

1. **Supersession**: ``INSERT ... ON CONFLICT (scope) DO UPDATE`` replaces
   the token of a (account, device) pair or of an account in one
   statement. Concurrent issuers serialize on the unique index; the last
   commit wins and only one row ever exists per scope.

2. **Consumption**: ``DELETE ... WHERE token = %s AND expires_at > NOW()
   RETURNING`` removes and returns the token atomically. A concurrent
   second consumer blocks on the row lock, then finds nothing.

3. **Account uniqueness**: ``INSERT ... ON CONFLICT DO NOTHING`` against
   the UNIQUE email and username columns.

4. **Paired writes**: registration inserts the account and its first
   verification token in one transaction; confirmation chains the token
   ``DELETE`` into the account ``UPDATE`` in one statement. A failure of
   the second write undoes the first.

Security Design - Timing Oracle Prevention:
------------------------------------------
verify_credentials always runs bcrypt.checkpw(). When the identifier is
unknown the password is compared against a dummy hash built at the
configured work factor, so a miss on the identifier costs the same as a
miss on the password.
"""

import logging
import secrets
from functools import lru_cache
from pathlib import Path
from uuid import UUID, uuid4

import bcrypt
from psycopg_pool import ConnectionPool

from src.domain.models import (
    Account,
    EmailVerificationToken,
    IdentifierKind,
    PasswordResetToken,
    RefreshToken,
    RegistrationData,
)

logger = logging.getLogger(__name__)

_ACCOUNT_COLUMNS = "id, username, email, password_hash, verified"
_JOINED_ACCOUNT_COLUMNS = (
    "accounts.id, accounts.username, accounts.email, accounts.password_hash, accounts.verified"
)


def _account_from_row(row: tuple) -> Account:
    return Account(id=row[0], username=row[1], email=row[2], password_hash=row[3], verified=row[4])


def _generate_token() -> str:
    """Opaque, URL-safe, cryptographically random token string."""
    return secrets.token_urlsafe(32)


@lru_cache
def _dummy_bcrypt_hash(cost: int) -> str:
    """
    Bcrypt hash for timing oracle prevention.

    Compared against when the identifier doesn't exist. Built at the same
    cost as stored passwords so both failure paths take the same time.
    """
    return bcrypt.hashpw(b"dummy_password_for_timing_safety", bcrypt.gensalt(cost)).decode()


_CREATE_ACCOUNT_SQL = f"""
    INSERT INTO accounts (id, username, email, password_hash, verified)
    VALUES (%s, %s, %s, %s, FALSE)
    ON CONFLICT DO NOTHING
    RETURNING {_ACCOUNT_COLUMNS}
"""

_ISSUE_VERIFICATION_SQL = """
    INSERT INTO email_verification_tokens (token, account_id, expires_at)
    VALUES (%s, %s, NOW() + %s * INTERVAL '1 second')
    ON CONFLICT (account_id) DO UPDATE
    SET token = EXCLUDED.token,
        expires_at = EXCLUDED.expires_at,
        created_at = NOW()
    RETURNING token, account_id, expires_at
"""


class PostgresAccountDirectory:
    """
    Implements AccountDirectory protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    _EXISTS_SQL = {
        IdentifierKind.EMAIL: "SELECT EXISTS (SELECT 1 FROM accounts WHERE email = %s)",
        IdentifierKind.USERNAME: "SELECT EXISTS (SELECT 1 FROM accounts WHERE username = %s)",
    }

    def __init__(self, pool: ConnectionPool, bcrypt_cost: int = 10) -> None:
        """
        Initialize directory with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
            bcrypt_cost: Work factor passwords are hashed with
        """
        self._pool = pool
        self._dummy_hash = _dummy_bcrypt_hash(bcrypt_cost)

    def exists(self, kind: IdentifierKind, value: str) -> bool:
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(self._EXISTS_SQL[kind], (value,))
            return bool(cursor.fetchone()[0])

    def verify_credentials(self, identifier: str, secret: str, device_id: str) -> Account | None:
        """
        Check username-or-email and password.

        Both lookups (username and email) share one query, and bcrypt runs
        on every path, so the response never reveals which part was wrong.

        Returns:
            Matching account, or None on any mismatch
        """
        sql = f"""
            SELECT {_ACCOUNT_COLUMNS}
            FROM accounts
            WHERE username = %s OR email = %s
            LIMIT 1
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (identifier, identifier))
            row = cursor.fetchone()

        stored_hash = row[3] if row is not None else self._dummy_hash
        password_valid = bcrypt.checkpw(secret.encode(), stored_hash.encode())

        if row is None or not password_valid:
            logger.info("Credential check failed for device %s", device_id)
            return None
        return _account_from_row(row)

    def create_account(self, data: RegistrationData) -> Account | None:
        """
        Atomically create an unverified account.

        The UNIQUE constraints on email and username decide races: only one
        of several concurrent registrations for the same identifier inserts.

        Returns:
            New account, or None if email or username is taken
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                _CREATE_ACCOUNT_SQL, (uuid4(), data.username, data.email, data.password_hash)
            )
            row = cursor.fetchone()
            conn.commit()

        return _account_from_row(row) if row is not None else None

    def find_by_email(self, email: str) -> Account | None:
        return self._find_one("email = %s", email)

    def find_by_id(self, account_id: UUID) -> Account | None:
        return self._find_one("id = %s", account_id)

    def mark_verified(self, account_id: UUID) -> None:
        sql = "UPDATE accounts SET verified = TRUE, updated_at = NOW() WHERE id = %s"
        with self._pool.connection() as conn:
            conn.execute(sql, (account_id,))
            conn.commit()

    def replace_credential(self, account_id: UUID, password_hash: str) -> None:
        sql = "UPDATE accounts SET password_hash = %s, updated_at = NOW() WHERE id = %s"
        with self._pool.connection() as conn:
            conn.execute(sql, (password_hash, account_id))
            conn.commit()

    def _find_one(self, where: str, value: object) -> Account | None:
        sql = f"SELECT {_ACCOUNT_COLUMNS} FROM accounts WHERE {where}"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (value,))
            row = cursor.fetchone()
        return _account_from_row(row) if row is not None else None


class PostgresTokenStore:
    """
    Implements TokenStore protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Expiry is computed and compared with database time (NOW()).
    """

    def __init__(
        self,
        pool: ConnectionPool,
        refresh_ttl_seconds: int,
        verification_ttl_seconds: int,
        reset_ttl_seconds: int,
    ) -> None:
        self._pool = pool
        self._refresh_ttl = refresh_ttl_seconds
        self._verification_ttl = verification_ttl_seconds
        self._reset_ttl = reset_ttl_seconds

    def issue_refresh_token(self, account_id: UUID, device_id: str) -> RefreshToken:
        """
        Create the refresh token of a device, superseding the previous one.

        The old token string stops existing in the same statement that
        makes the new one visible.
        """
        sql = """
            INSERT INTO refresh_tokens (token, account_id, device_id, expires_at)
            VALUES (%s, %s, %s, NOW() + %s * INTERVAL '1 second')
            ON CONFLICT (account_id, device_id) DO UPDATE
            SET token = EXCLUDED.token,
                expires_at = EXCLUDED.expires_at,
                refresh_count = 0,
                created_at = NOW()
            RETURNING token, account_id, device_id, expires_at, refresh_count
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (_generate_token(), account_id, device_id, self._refresh_ttl))
            row = cursor.fetchone()
            conn.commit()

        return RefreshToken(*row)

    def find_refresh_token(self, token: str) -> RefreshToken | None:
        sql = """
            SELECT token, account_id, device_id, expires_at, refresh_count
            FROM refresh_tokens
            WHERE token = %s
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token,))
            row = cursor.fetchone()
        return RefreshToken(*row) if row is not None else None

    def record_refresh(self, token: str) -> None:
        sql = "UPDATE refresh_tokens SET refresh_count = refresh_count + 1 WHERE token = %s"
        with self._pool.connection() as conn:
            conn.execute(sql, (token,))
            conn.commit()

    def issue_email_verification_token(self, account_id: UUID) -> EmailVerificationToken:
        """Create the verification token of an account, superseding the previous one."""
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                _ISSUE_VERIFICATION_SQL, (_generate_token(), account_id, self._verification_ttl)
            )
            row = cursor.fetchone()
            conn.commit()

        return EmailVerificationToken(*row)

    def find_email_verification_token(self, token: str) -> EmailVerificationToken | None:
        sql = """
            SELECT token, account_id, expires_at
            FROM email_verification_tokens
            WHERE token = %s
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token,))
            row = cursor.fetchone()
        return EmailVerificationToken(*row) if row is not None else None

    def consume_email_verification_token(self, token: str) -> Account | None:
        return self._consume("email_verification_tokens", token)

    def open_registration(
        self, data: RegistrationData
    ) -> tuple[Account, EmailVerificationToken] | None:
        """
        Create an unverified account together with its first verification token.

        Both inserts share one transaction. If the token cannot be stored the
        account is rolled back with it, so no account ever exists without a
        live verification token to confirm it.

        Returns:
            The new account and its token, or None if email or username is taken
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(
                _CREATE_ACCOUNT_SQL, (uuid4(), data.username, data.email, data.password_hash)
            )
            account_row = cursor.fetchone()
            if account_row is None:
                return None

            account = _account_from_row(account_row)
            cursor.execute(
                _ISSUE_VERIFICATION_SQL, (_generate_token(), account.id, self._verification_ttl)
            )
            token_row = cursor.fetchone()
            conn.commit()

        return account, EmailVerificationToken(*token_row)

    def confirm_email_verification_token(self, token: str) -> Account | None:
        """
        Consume a verification token and mark its owner verified in one statement.

        A failure leaves both the token and the account untouched, so the
        same link can be used again.

        Returns:
            The verified account, or None if absent, expired or already consumed
        """
        sql = f"""
            WITH consumed AS (
                DELETE FROM email_verification_tokens
                WHERE token = %s AND expires_at > NOW()
                RETURNING account_id
            )
            UPDATE accounts
            SET verified = TRUE, updated_at = NOW()
            FROM consumed
            WHERE accounts.id = consumed.account_id
            RETURNING {_JOINED_ACCOUNT_COLUMNS}
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token,))
            row = cursor.fetchone()
            conn.commit()

        return _account_from_row(row) if row is not None else None

    def issue_password_reset_token(self, account_id: UUID) -> PasswordResetToken:
        """Create the reset token of an account, superseding the previous one."""
        sql = """
            WITH issued AS (
                INSERT INTO password_reset_tokens (token, account_id, expires_at)
                VALUES (%s, %s, NOW() + %s * INTERVAL '1 second')
                ON CONFLICT (account_id) DO UPDATE
                SET token = EXCLUDED.token,
                    expires_at = EXCLUDED.expires_at,
                    created_at = NOW()
                RETURNING token, account_id, expires_at
            )
            SELECT issued.token, issued.account_id, accounts.email, issued.expires_at
            FROM issued
            JOIN accounts ON accounts.id = issued.account_id
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (_generate_token(), account_id, self._reset_ttl))
            row = cursor.fetchone()
            conn.commit()

        return PasswordResetToken(*row)

    def consume_password_reset_token(self, token: str) -> Account | None:
        return self._consume("password_reset_tokens", token)

    def _consume(self, table: str, token: str) -> Account | None:
        """
        Delete an unexpired token and return its owner in one statement.

        Expired tokens are left in place (a verification token may still be
        resent) but never returned. Absent, expired and consumed tokens all
        yield None.
        """
        sql = f"""
            WITH consumed AS (
                DELETE FROM {table}
                WHERE token = %s AND expires_at > NOW()
                RETURNING account_id
            )
            SELECT {_JOINED_ACCOUNT_COLUMNS}
            FROM consumed
            JOIN accounts ON accounts.id = consumed.account_id
        """

        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (token,))
            row = cursor.fetchone()
            conn.commit()

        return _account_from_row(row) if row is not None else None


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)
                conn.commit()

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
