"""ABOUTME: SQLAlchemy table definitions for imperative mapping of OpenIDP domain objects
ABOUTME: Defines database schema for users, clients, themes, layouts, templates and reset tokens"""

import uuid
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, TIMESTAMP, Boolean, Column, ForeignKey, Index, String, Table, Text, TypeDecorator
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from sqlalchemy.engine.interfaces import Dialect
from sqlalchemy.orm import registry
from sqlalchemy.sql.sqltypes import String as SQLString


def aware_utcnow() -> datetime:  # pragma: no cover
    return datetime.now(UTC)


class TZAwareDatetime(TypeDecorator):
    """Custom type for timezone-aware datetime objects."""

    impl = TIMESTAMP
    cache_ok = True

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        # Ensure timezone=True for PostgreSQL
        kwargs.setdefault("timezone", True)
        super().__init__(*args, **kwargs)

    def process_result_value(self, value: Any, dialect: Dialect) -> datetime | None:
        if value is None:
            return value

        # SQLite drops the tzinfo, everything we store is UTC
        if isinstance(value, datetime) and value.tzinfo is None:
            return value.replace(tzinfo=UTC)

        return value


class CrossDatabaseUUID(TypeDecorator):
    """Cross-database UUID type that works with both PostgreSQL and SQLite."""

    impl = SQLString
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> Any:
        if dialect.name == "postgresql":
            return dialect.type_descriptor(PostgresUUID(as_uuid=True))
        # For SQLite and other databases, use CHAR(36) to store UUID as string
        return dialect.type_descriptor(SQLString(36))

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return value

        if isinstance(value, uuid.UUID):
            return value if dialect.name == "postgresql" else str(value)
        if isinstance(value, str):
            try:
                parsed = uuid.UUID(value)
            except ValueError as e:
                raise ValueError(f"Invalid UUID string: {value}") from e
            return parsed if dialect.name == "postgresql" else value
        raise TypeError(f"Expected UUID or string, got {type(value)}")

    def process_result_value(self, value: Any, dialect: Dialect) -> uuid.UUID | None:
        if value is None:
            return value
        if isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(str(value))


# Create a registry for imperative mapping
mapper_registry = registry()
metadata = mapper_registry.metadata

users = Table(
    "users",
    metadata,
    Column("id", CrossDatabaseUUID(), primary_key=True, default=uuid.uuid4),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    # OIDC standard claims: name, given_name, picture, email_verified, address, ...
    Column("profile", JSON, nullable=False, default=dict),
    Column("created_at", TZAwareDatetime(), nullable=False, default=aware_utcnow),
    Column("is_active", Boolean, nullable=False, default=True),
)

themes = Table(
    "themes",
    metadata,
    Column("id", CrossDatabaseUUID(), primary_key=True, default=uuid.uuid4),
    Column("name", String(100), nullable=False, unique=True),
    Column("created_at", TZAwareDatetime(), nullable=False, default=aware_utcnow),
)

clients = Table(
    "clients",
    metadata,
    Column("client_id", String(255), primary_key=True),
    Column("client_name", String(255), nullable=False, default=""),
    Column("theme_id", CrossDatabaseUUID(), ForeignKey("themes.id", ondelete="SET NULL"), nullable=True),
    Column("redirect_uris", JSON, nullable=False, default=list),
    Column("post_logout_redirect_uris", JSON, nullable=False, default=list),
    Column("created_at", TZAwareDatetime(), nullable=False, default=aware_utcnow),
)

layouts = Table(
    "layouts",
    metadata,
    Column("id", CrossDatabaseUUID(), primary_key=True, default=uuid.uuid4),
    Column("theme_id", CrossDatabaseUUID(), ForeignKey("themes.id", ondelete="CASCADE"), nullable=False),
    Column("name", String(100), nullable=False),
    Column("code", Text, nullable=False, default=""),
    Column("created_at", TZAwareDatetime(), nullable=False, default=aware_utcnow),
)

templates = Table(
    "templates",
    metadata,
    Column("id", CrossDatabaseUUID(), primary_key=True, default=uuid.uuid4),
    Column("theme_id", CrossDatabaseUUID(), ForeignKey("themes.id", ondelete="CASCADE"), nullable=False),
    Column("name", String(100), nullable=False),
    Column("code", Text, nullable=False, default=""),
    Column("layout_id", CrossDatabaseUUID(), ForeignKey("layouts.id", ondelete="RESTRICT"), nullable=False),
    Column("created_at", TZAwareDatetime(), nullable=False, default=aware_utcnow),
    Column("updated_at", TZAwareDatetime(), nullable=False, default=aware_utcnow, onupdate=aware_utcnow),
)

password_reset_tokens = Table(
    "password_reset_tokens",
    metadata,
    Column("id", CrossDatabaseUUID(), primary_key=True, default=uuid.uuid4),
    Column("user_id", CrossDatabaseUUID(), ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("token", String(100), nullable=False, unique=True),
    Column("created_at", TZAwareDatetime(), nullable=False, default=aware_utcnow),
    Column("expires_at", TZAwareDatetime(), nullable=False),
    Column("used_at", TZAwareDatetime(), nullable=True),
)

Index("ix_clients_theme_id", clients.c.theme_id)
Index("ix_layouts_theme_name", layouts.c.theme_id, layouts.c.name, unique=True)
# one template per page per theme
Index("ix_templates_theme_name", templates.c.theme_id, templates.c.name, unique=True)
Index("ix_password_reset_tokens_user_id", password_reset_tokens.c.user_id)
