"""Utility helpers."""

from .hashing import hash_lines, md5_hash

__all__ = ["hash_lines", "md5_hash"]
