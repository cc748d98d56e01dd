"""Authentication submodule – challenge solving, login, logout."""

from fritz_nas.auth.challenge import (
    md5_response,
    pbkdf2_response,
    solve_challenge,
)
from fritz_nas.auth.login import (
    Session,
    authenticate,
    close,
    open_session,
)
from fritz_nas.auth.session_info import (
    SessionInfo,
    User,
    parse_session_info,
)

__all__ = [
    "md5_response",
    "pbkdf2_response",
    "solve_challenge",
    "Session",
    "authenticate",
    "close",
    "open_session",
    "SessionInfo",
    "User",
    "parse_session_info",
]
