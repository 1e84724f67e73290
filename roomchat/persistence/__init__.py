"""Persistence layer: repository protocols and the memory and SQL backends."""

from .storage import Storage, create_memory_storage, seed_default_rooms

__all__ = ["Storage", "create_memory_storage", "seed_default_rooms"]
