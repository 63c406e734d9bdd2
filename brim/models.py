"""
SQLAlchemy models for the canonical store.

These are the tables the import engine writes to: bookmarks, history,
cookies, logins, plus a log of import runs. All timestamps are Unix
milliseconds (BigInteger), matching the rest of the application.
"""
from typing import Optional
from sqlalchemy import (
    BigInteger, Boolean, Index, Integer, JSON, LargeBinary, String, UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from brim.timestamps import now_ms


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class Bookmark(Base):
    """
    A saved URL.

    Attributes:
        id: Primary key
        title: Bookmark title
        url: The bookmarked URL (unique)
        created_at: When the bookmark was created, Unix ms
    """
    __tablename__ = 'bookmarks'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(512), nullable=False)
    url: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=now_ms, index=True)

    def __repr__(self) -> str:
        return f"<Bookmark(id={self.id}, url='{self.url[:50]}')>"


class HistoryEntry(Base):
    """
    One visited URL, aggregated over all its visits.

    Attributes:
        url: The visited URL (unique)
        title: Last known page title
        visit_at: Most recent visit, Unix ms
        visit_count: Number of visits (only ever grows)
    """
    __tablename__ = 'history'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    url: Mapped[str] = mapped_column(String(2048), nullable=False, unique=True)
    title: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    visit_at: Mapped[int] = mapped_column(BigInteger, nullable=False, index=True)
    visit_count: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    def __repr__(self) -> str:
        return f"<HistoryEntry(url='{self.url[:50]}', visits={self.visit_count})>"


class Cookie(Base):
    """
    An imported cookie. ``value`` is the decrypted raw value.

    Unique per (host, name, path); the last import wins.
    """
    __tablename__ = 'cookies'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    host: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    path: Mapped[str] = mapped_column(String(1024), nullable=False, default='/')
    value: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    expires_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    last_accessed_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    secure: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    http_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    same_site: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(32), nullable=True, index=True)

    __table_args__ = (
        UniqueConstraint('host', 'name', 'path', name='uq_cookie_host_name_path'),
        Index('ix_cookies_host', 'host'),
    )

    def __repr__(self) -> str:
        return f"<Cookie(host='{self.host}', name='{self.name}', path='{self.path}')>"


class Login(Base):
    """
    A saved credential. ``password`` is None when it could not be decrypted.

    Unique per (origin, username); the last import wins.
    """
    __tablename__ = 'logins'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    origin: Mapped[str] = mapped_column(String(2048), nullable=False)
    username: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    password: Mapped[Optional[bytes]] = mapped_column(LargeBinary, nullable=True)
    realm: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    form_action_origin: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    times_used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    updated_at: Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)
    source: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    __table_args__ = (
        UniqueConstraint('origin', 'username', name='uq_login_origin_username'),
        Index('ix_logins_origin', 'origin'),
    )

    def __repr__(self) -> str:
        return f"<Login(origin='{self.origin}', username='{self.username}')>"


class ImportLog(Base):
    """
    Audit record of one import run.

    Attributes:
        profile_id: Source profile id (e.g. 'chrome:Default')
        browser: Browser kind
        started_at / finished_at: Unix ms
        imported: Rows written per category
        errors: Category-scoped error messages
    """
    __tablename__ = 'import_log'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    profile_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    browser: Mapped[str] = mapped_column(String(32), nullable=False)
    started_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
    finished_at: Mapped[int] = mapped_column(BigInteger, nullable=False, default=now_ms)
    imported: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    errors: Mapped[Optional[list]] = mapped_column(JSON, nullable=True, default=list)

    def __repr__(self) -> str:
        return f"<ImportLog(profile_id='{self.profile_id}', finished_at={self.finished_at})>"
