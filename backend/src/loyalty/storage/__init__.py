"""Account store."""

from loyalty.storage.db import Base, Database

__all__ = ["Base", "Database"]
