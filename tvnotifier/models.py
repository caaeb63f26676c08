"""
SQLAlchemy ORM Models for TV Notifier

This module defines the tracked shows, tracked movies, and subscribers tables.
The notifier only reads them; they are maintained by the management UI.
"""
from sqlalchemy import Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models"""
    pass


class TrackedShow(Base):
    """Show tracked by TVmaze identifier"""
    __tablename__ = "shows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    def __repr__(self) -> str:
        return f"<TrackedShow(id={self.id})>"


class TrackedMovie(Base):
    """Movie tracked by TMDB identifier"""
    __tablename__ = "movies"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    def __repr__(self) -> str:
        return f"<TrackedMovie(id={self.id})>"


class User(Base):
    """Digest subscriber"""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    email: Mapped[str | None] = mapped_column(String, nullable=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email={self.email})>"
