"""Error hierarchy for scratchdiff.

Every public error class inherits from ScratchDiffError.  Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Only :class:`StorageUnavailableError` is fatal to a diff session.  The other
two kinds are local to one script: the engine and the render boundary catch
them and degrade that script's record to the ``error`` status.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Machine-readable error codes for every error scratchdiff can raise."""

    STORAGE_UNAVAILABLE = "STORAGE_UNAVAILABLE"
    SERIALIZATION_ERROR = "SERIALIZATION_ERROR"
    RENDER_ERROR = "RENDER_ERROR"


class ScratchDiffError(Exception):
    """Base exception for all scratchdiff errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


class StorageUnavailableError(ScratchDiffError):
    """A snapshot could not be fetched from project storage.

    Fatal to the whole diff session: the caller surfaces it as a single
    alert and shows no partial diff.

    Context keys: ``sprite``, ``state``, ``reason``, and ``path`` or ``url``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.STORAGE_UNAVAILABLE,
            message=message,
            context=context,
            cause=cause,
        )


class SerializationError(ScratchDiffError):
    """A script could not be linearized into lines.

    Context keys: ``script_index``, ``block_id``, ``opcode``, ``input``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SERIALIZATION_ERROR,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def script_index(self) -> int | None:
        return self.context.get("script_index")


class RenderError(ScratchDiffError):
    """The external renderer could not paint a script's diff.

    Context keys: ``script_index``, ``style``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.RENDER_ERROR,
            message=message,
            context=context,
            cause=cause,
        )
