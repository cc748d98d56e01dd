"""
Exception classes for the fritz_nas package.

Every error raised by the client derives from :class:`FritzNASError` and
carries a ``kind`` discriminant, so callers can branch either with
``isinstance`` / ``except`` clauses or on ``err.kind``.  Lower-level causes
(``requests`` exceptions, ``ValueError`` from hex decoding, ...) are chained
with ``raise ... from`` and stay reachable through ``__cause__``.
"""

import enum
from dataclasses import dataclass
from typing import Any


class ErrorKind(enum.Enum):
    INPUT_VALIDATION = "input_validation"
    TRANSPORT = "transport"
    DEADLINE_EXCEEDED = "deadline_exceeded"
    CONTENT_TYPE_MISMATCH = "content_type_mismatch"
    DECODE = "decode"
    CHALLENGE_FORMAT = "challenge_format"
    UNSUPPORTED_CHALLENGE = "unsupported_challenge"
    SESSION_INVALID = "session_invalid"
    BLOCK_TIME = "block_time"
    REMOTE = "remote"
    REMOTE_STRUCTURED = "remote_structured"
    LOGOUT = "logout"


class FritzNASError(Exception):
    """Base exception for all fritz_nas errors."""

    kind: ErrorKind = ErrorKind.TRANSPORT


class InputValidationError(FritzNASError):
    """A required argument is missing or empty."""

    kind = ErrorKind.INPUT_VALIDATION

    def __init__(self, field: str, message: str | None = None) -> None:
        self.field = field
        super().__init__(message or f"please provide {field}")


class TransportError(FritzNASError):
    """Network-level failure: DNS, connection refused, reset, ...

    Raised before any HTTP status code has been observed.
    """

    kind = ErrorKind.TRANSPORT


class DeadlineExceededError(TransportError):
    """The per-call deadline elapsed before the call completed.

    A TransportError, so ``except TransportError`` also sees timeouts, but
    with its own ``kind``.
    """

    kind = ErrorKind.DEADLINE_EXCEEDED

    def __init__(self, deadline: float, message: str | None = None) -> None:
        self.deadline = deadline
        super().__init__(message or f"deadline of {deadline:g} seconds exceeded")


class ContentTypeMismatchError(FritzNASError):
    """The response carried a different content type than the call expects."""

    kind = ErrorKind.CONTENT_TYPE_MISMATCH

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"expected {expected} content-type, but got {actual or 'none'}"
        )


class DecodeError(FritzNASError):
    """A response body (XML or JSON) could not be decoded."""

    kind = ErrorKind.DECODE


class ChallengeFormatError(DecodeError):
    """A version-2 challenge carries a salt or iteration count that does not decode."""

    kind = ErrorKind.CHALLENGE_FORMAT


class UnsupportedChallengeError(FritzNASError):
    """The challenge string is in neither the MD5 nor the PBKDF2 format."""

    kind = ErrorKind.UNSUPPORTED_CHALLENGE

    def __init__(self, challenge: str) -> None:
        self.challenge = challenge
        super().__init__(
            "cannot solve challenge, input string is not in the expected format"
        )


class SessionInvalidError(FritzNASError):
    """The device answered the login with an empty or all-zero SID."""

    kind = ErrorKind.SESSION_INVALID

    def __init__(self, message: str = "login failed, session id is wrong") -> None:
        super().__init__(message)


class BlockTimeError(FritzNASError):
    """Login rejected while the device enforces a cooldown.

    ``duration`` is the number of seconds to wait before trying again,
    regardless of whether the credentials are correct.
    """

    kind = ErrorKind.BLOCK_TIME

    def __init__(self, duration: int) -> None:
        self.duration = duration
        super().__init__(
            "Login failed. Temporary cooldown for new requests is active, "
            f"please wait {duration} seconds"
        )


class RemoteError(FritzNASError):
    """Non-success HTTP status whose body is not a structured error."""

    kind = ErrorKind.REMOTE

    def __init__(self, status_code: int, body: str, message: str | None = None) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message or f"HTTP {status_code}: {body[:200]}")


@dataclass(frozen=True)
class ControllerError:
    """Filesystem-operation failure nested inside a structured remote error."""

    message: str
    path: str
    code: int

    def __str__(self) -> str:
        return f"Code: {self.code}, Path: {self.path}, Msg: {self.message}"


class RemoteStructuredError(RemoteError):
    """Non-success HTTP status with a ``{"error": {...}}`` body.

    ``data`` holds the raw nested payload exactly as decoded from JSON;
    ``controller_error`` is its typed form when the device sent one.
    """

    kind = ErrorKind.REMOTE_STRUCTURED

    def __init__(self, message: str, status_code: int, data: Any = None, body: str = "") -> None:
        super().__init__(status_code, body, message)
        self.message = message
        self.data = data
        self.controller_error = _controller_error(data)


def _controller_error(data: Any) -> ControllerError | None:
    if not isinstance(data, dict):
        return None
    message, path, code = data.get("message"), data.get("path"), data.get("code")
    if not isinstance(code, int) or isinstance(code, bool):
        return None
    if not isinstance(message, str) or not isinstance(path, str):
        return None
    return ControllerError(message=message, path=path, code=code)


class LogoutError(FritzNASError):
    """The device did not confirm the logout of ``session``."""

    kind = ErrorKind.LOGOUT

    def __init__(self, session: str, reason: str = "") -> None:
        self.session = session
        detail = f", {reason}" if reason else ""
        super().__init__(f"couldn't close session {session}{detail}")


class LogoutDeadlineError(LogoutError, DeadlineExceededError):
    """The logout of ``session`` ran out of time.

    Caught by both ``except LogoutError`` and ``except DeadlineExceededError``;
    ``kind`` is DEADLINE_EXCEEDED.
    """

    kind = ErrorKind.DEADLINE_EXCEEDED

    def __init__(self, session: str, deadline: float) -> None:
        self.session = session
        DeadlineExceededError.__init__(
            self,
            deadline,
            f"couldn't close session {session}, deadline of {deadline:g} seconds exceeded",
        )
