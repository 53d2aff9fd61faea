"""
auth/store.py -- SQLAlchemy Core persistence layer for user credentials.

Pattern: Repository + Data Mapper. UserStore is the repository; _row_to_user
is the mapper. Flow and route code never touches SQL directly.

UserStore is the Credential Store of the auth core:
  register() validates, hashes and inserts a new user in one statement.
  verify()   looks up by normalized username and checks the password with
             timing equalization [C1].

Security:
  All queries use bound parameters. No f-strings in SQL.

  username and email are UNIQUE columns. register() checks for duplicates up
  front to produce field-specific messages, and still translates the
  IntegrityError raised when two concurrent registrations race past that
  check. A single INSERT means a failed uniqueness check never leaves a
  partial record behind.

Layer rule: no imports from api/ or core/.
"""

from __future__ import annotations

import logging
import re
import secrets
from datetime import datetime, timezone

from email_validator import EmailNotValidError, validate_email
from sqlalchemy import Column, MetaData, String, Table, Text, create_engine, event, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.errors import DuplicateError, InvalidCredentialError, NotFoundError, ValidationError
from auth.models import ADMIN_USERNAME, User
from auth.passwords import DUMMY_HASH, WEAK_PASSWORD_MESSAGE, hash_password, is_strong_password, verify_password

logger = logging.getLogger("sessionguard.auth")

_USERNAME_RE = re.compile(r"^[A-Za-z0-9 _]+$")

RESERVED_NAME_MESSAGE = "Name admin is reserved"
BAD_USERNAME_MESSAGE = "Name should contain only letters, numbers, space or _"
BAD_EMAIL_MESSAGE = "Enter a valid Email"
DUPLICATE_EMAIL_MESSAGE = "Email already exists"
DUPLICATE_USERNAME_MESSAGE = "Username already exists"

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),  # opaque random id, never sequential
    Column("username", String(255), nullable=False, unique=True),  # stored lower-cased
    Column("email", String(320), nullable=False, unique=True),  # stored lower-cased
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# WAL mode
# ---------------------------------------------------------------------------


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode so concurrent readers are not blocked by writes.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _new_user_id() -> str:
    return secrets.token_hex(8)


def normalize_username(username: str) -> str:
    return username.strip().lower()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def _validation_messages(username: str, email: str, password: str) -> list[tuple[str, str]]:
    """Return (field, message) pairs for every rule the input breaks."""
    problems: list[tuple[str, str]] = []
    if username == ADMIN_USERNAME:
        problems.append(("username", RESERVED_NAME_MESSAGE))
    elif not _USERNAME_RE.match(username):
        problems.append(("username", BAD_USERNAME_MESSAGE))
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        problems.append(("email", BAD_EMAIL_MESSAGE))
    if not is_strong_password(password):
        problems.append(("password", WEAK_PASSWORD_MESSAGE))
    return problems


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore("sqlite:///:memory:")
        user_id = store.register("alice", "alice@example.com", "S3cure!pass")
        user = store.verify("Alice", "S3cure!pass")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        connect_args: dict = {}
        if db_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self.engine: Engine = create_engine(db_url, connect_args=connect_args)
        if db_url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_wal_mode)
        _metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Credential Store operations
    # ------------------------------------------------------------------

    def register(self, username: str, email: str, password: str) -> str:
        """Validate and create a user. Returns the new user's id.

        Raises:
            ValidationError: reserved or malformed username, invalid email,
                weak password. All broken rules are reported, joined by ", ".
            DuplicateError:  username or email already taken. field tells
                which one; email is checked first.
        """
        username = normalize_username(username)
        email = normalize_email(email)

        problems = _validation_messages(username, email, password)
        if problems:
            raise ValidationError(", ".join(msg for _, msg in problems), field=problems[0][0])

        self._raise_if_taken(username, email)

        now = _now_iso()
        user_id = _new_user_id()
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        username=username,
                        email=email,
                        hashed_password=hash_password(password),
                        created_at=now,
                        updated_at=now,
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            # A concurrent registration won the race after our pre-check.
            self._raise_if_taken(username, email)
            raise DuplicateError(DUPLICATE_EMAIL_MESSAGE, field="email") from exc

        logger.info("Registered user %s", user_id)
        return user_id

    def verify(self, username: str, password: str) -> User:
        """Return the User whose password matches, with timing equalization [C1].

        bcrypt runs whether or not the user exists:
        - Unknown username: checkpw against DUMMY_HASH (same cost as a real check)
        - Wrong password:   checkpw against the stored hash

        Raises NotFoundError or InvalidCredentialError.
        """
        user = self.get_by_username(username)
        if user is None:
            # Equalize timing -- do NOT return early before running bcrypt [C1]
            verify_password(password, DUMMY_HASH)
            raise NotFoundError("User cannot be found", field="username")
        if not verify_password(password, user.hashed_password):
            raise InvalidCredentialError("Invalid password", field="password")
        return user

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_by_username(self, username: str) -> User | None:
        """Look up a user by username (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _users.select().where(_users.c.username == normalize_username(username))
            ).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by email (case-insensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == normalize_email(email))).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def count_users(self) -> int:
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users)).scalar()
        return result or 0

    def close(self) -> None:
        self.engine.dispose()

    def _raise_if_taken(self, username: str, email: str) -> None:
        if self.get_by_email(email) is not None:
            raise DuplicateError(DUPLICATE_EMAIL_MESSAGE, field="email")
        if self.get_by_username(username) is not None:
            raise DuplicateError(DUPLICATE_USERNAME_MESSAGE, field="username")


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        email=row.email,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
