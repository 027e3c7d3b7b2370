"""MD5 helpers for structural script fingerprints.

The diff engine uses these to recognise a script whose top-level block id
changed between snapshots while its structure did not.  They are **not**
used for security purposes.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Sequence


def md5_hash(data: str) -> str:
    """Return the hex-encoded MD5 digest of *data* encoded as UTF-8.

    Examples
    --------
    >>> md5_hash("hello")
    '5d41402abc4b2a76b9719d911017c592'
    """
    return hashlib.md5(data.encode("utf-8")).hexdigest()


def hash_lines(lines: Sequence[str]) -> str:
    """Return the MD5 of a JSON-encoded line sequence.

    JSON encoding keeps ``["a\\nb"]`` and ``["a", "b"]`` distinct, which a
    plain newline join would not.

    Examples
    --------
    >>> hash_lines(["a", "b"]) == hash_lines(["a", "b"])
    True
    >>> hash_lines(["a\\nb"]) == hash_lines(["a", "b"])
    False
    """
    return md5_hash(json.dumps(list(lines), ensure_ascii=False))
