"""Database layer - declarative base classes and column types."""

from billing_kernel.db.base import Base, TrackedBase, UUIDString

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
]
