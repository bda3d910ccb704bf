"""Database helpers (declarative base and store handle export)."""

from .session import Base, Database

__all__ = ["Base", "Database"]
