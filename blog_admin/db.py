"""
Database abstraction for SQLAlchemy-backed storage and an in-memory test implementation.

Only three small tables live locally: post priorities, the admin user shadow
and its access tokens. Posts themselves belong to WordPress.
"""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

from sqlalchemy import Column, Float, ForeignKey, Integer, String, create_engine, delete, select, text
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class DbClient(Protocol):
    """Interface for database access."""

    def get_priority(self, wordpress_post_id: str) -> Optional["PriorityRecord"]:
        ...

    def get_priorities(self) -> dict[str, int]:
        ...

    def set_priority(self, wordpress_post_id: str, priority: int) -> "PriorityRecord":
        ...

    def delete_priority(self, wordpress_post_id: str) -> bool:
        ...

    def get_or_create_user(self, email: str, name: str) -> "UserRecord":
        ...

    def create_token(self, user_id: int, token_hash: str, name: str = "auth-token") -> None:
        ...

    def revoke_user_tokens(self, user_id: int) -> int:
        ...

    def get_user_by_token(self, token_hash: str) -> Optional["UserRecord"]:
        ...

    def delete_token(self, token_hash: str) -> bool:
        ...

    def ping(self) -> None:
        ...


@dataclass
class PriorityRecord:
    wordpress_post_id: str
    priority: int = 0
    created_at: float = field(default_factory=lambda: time.time())
    updated_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "wordpress_post_id": self.wordpress_post_id,
            "priority": self.priority,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass
class UserRecord:
    id: int
    email: str
    name: str
    created_at: float = field(default_factory=lambda: time.time())

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "created_at": self.created_at,
        }


@dataclass
class TokenRecord:
    token_hash: str
    user_id: int
    name: str = "auth-token"
    created_at: float = field(default_factory=lambda: time.time())


class InMemoryDbClient:
    """Simple in-memory database for development and tests."""

    def __init__(self):
        self.priorities: Dict[str, PriorityRecord] = {}
        self.users: Dict[int, UserRecord] = {}
        self.tokens: Dict[str, TokenRecord] = {}
        self._user_ids = itertools.count(1)

    def get_priority(self, wordpress_post_id: str) -> Optional[PriorityRecord]:
        return self.priorities.get(wordpress_post_id)

    def get_priorities(self) -> dict[str, int]:
        return {key: record.priority for key, record in self.priorities.items()}

    def set_priority(self, wordpress_post_id: str, priority: int) -> PriorityRecord:
        record = self.priorities.get(wordpress_post_id)
        if record:
            record.priority = priority
            record.updated_at = time.time()
        else:
            record = PriorityRecord(wordpress_post_id=wordpress_post_id, priority=priority)
            self.priorities[wordpress_post_id] = record
        return record

    def delete_priority(self, wordpress_post_id: str) -> bool:
        return self.priorities.pop(wordpress_post_id, None) is not None

    def get_or_create_user(self, email: str, name: str) -> UserRecord:
        for user in self.users.values():
            if user.email == email:
                return user
        user = UserRecord(id=next(self._user_ids), email=email, name=name)
        self.users[user.id] = user
        return user

    def create_token(self, user_id: int, token_hash: str, name: str = "auth-token") -> None:
        self.tokens[token_hash] = TokenRecord(token_hash=token_hash, user_id=user_id, name=name)

    def revoke_user_tokens(self, user_id: int) -> int:
        stale = [key for key, token in self.tokens.items() if token.user_id == user_id]
        for key in stale:
            del self.tokens[key]
        return len(stale)

    def get_user_by_token(self, token_hash: str) -> Optional[UserRecord]:
        token = self.tokens.get(token_hash)
        if not token:
            return None
        return self.users.get(token.user_id)

    def delete_token(self, token_hash: str) -> bool:
        return self.tokens.pop(token_hash, None) is not None

    def ping(self) -> None:
        return None

    def reset(self) -> None:
        """Clear all stored data (useful in tests)."""
        self.priorities.clear()
        self.users.clear()
        self.tokens.clear()
        self._user_ids = itertools.count(1)


class SqlDbClient:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (e.g., Postgres, or SQLite for tests).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("DATABASE_URL is required for SqlDbClient")
        self.engine = create_engine(
            database_url,
            future=True,
            pool_pre_ping=True,
            pool_recycle=1800,
        )
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def _to_priority_record(self, row: "PriorityRow") -> PriorityRecord:
        return PriorityRecord(
            wordpress_post_id=row.wordpress_post_id,
            priority=row.priority,
            created_at=row.created_at,
            updated_at=row.updated_at,
        )

    def _to_user_record(self, row: "UserRow") -> UserRecord:
        return UserRecord(
            id=row.id, email=row.email, name=row.name, created_at=row.created_at
        )

    def get_priority(self, wordpress_post_id: str) -> Optional[PriorityRecord]:
        with self.Session() as session:
            row = session.get(PriorityRow, wordpress_post_id)
            return self._to_priority_record(row) if row else None

    def get_priorities(self) -> dict[str, int]:
        with self.Session() as session:
            rows = session.execute(
                select(PriorityRow.wordpress_post_id, PriorityRow.priority)
            ).all()
            return {post_id: priority for post_id, priority in rows}

    def set_priority(self, wordpress_post_id: str, priority: int) -> PriorityRecord:
        now = time.time()
        with self.Session() as session:
            row = session.get(PriorityRow, wordpress_post_id)
            if row:
                row.priority = priority
                row.updated_at = now
            else:
                row = PriorityRow(
                    wordpress_post_id=wordpress_post_id,
                    priority=priority,
                    created_at=now,
                    updated_at=now,
                )
                session.add(row)
            session.commit()
            session.refresh(row)
            return self._to_priority_record(row)

    def delete_priority(self, wordpress_post_id: str) -> bool:
        with self.Session() as session:
            result = session.execute(
                delete(PriorityRow).where(
                    PriorityRow.wordpress_post_id == wordpress_post_id
                )
            )
            session.commit()
            return bool(result.rowcount)

    def get_or_create_user(self, email: str, name: str) -> UserRecord:
        with self.Session() as session:
            row = session.execute(
                select(UserRow).where(UserRow.email == email)
            ).scalar_one_or_none()
            if not row:
                row = UserRow(email=email, name=name, created_at=time.time())
                session.add(row)
                session.commit()
                session.refresh(row)
            return self._to_user_record(row)

    def create_token(self, user_id: int, token_hash: str, name: str = "auth-token") -> None:
        with self.Session() as session:
            session.add(
                TokenRow(
                    token_hash=token_hash,
                    user_id=user_id,
                    name=name,
                    created_at=time.time(),
                )
            )
            session.commit()

    def revoke_user_tokens(self, user_id: int) -> int:
        with self.Session() as session:
            result = session.execute(delete(TokenRow).where(TokenRow.user_id == user_id))
            session.commit()
            return result.rowcount or 0

    def get_user_by_token(self, token_hash: str) -> Optional[UserRecord]:
        with self.Session() as session:
            token = session.get(TokenRow, token_hash)
            if not token:
                return None
            user = session.get(UserRow, token.user_id)
            return self._to_user_record(user) if user else None

    def delete_token(self, token_hash: str) -> bool:
        with self.Session() as session:
            result = session.execute(
                delete(TokenRow).where(TokenRow.token_hash == token_hash)
            )
            session.commit()
            return bool(result.rowcount)

    def ping(self) -> None:
        with self.Session() as session:
            session.execute(text("SELECT 1"))


Base = declarative_base()


class PriorityRow(Base):
    __tablename__ = "blog_post_priorities"

    wordpress_post_id = Column(String, primary_key=True)
    priority = Column(Integer, nullable=False, default=0)
    created_at = Column(Float, nullable=False)
    updated_at = Column(Float, nullable=False)


class UserRow(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=False)
    created_at = Column(Float, nullable=False)


class TokenRow(Base):
    __tablename__ = "access_tokens"

    token_hash = Column(String, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    name = Column(String, nullable=False, default="auth-token")
    created_at = Column(Float, nullable=False)
