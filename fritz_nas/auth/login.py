"""Login handshake, logout and the scoped session guard."""

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

import requests

from ..config import AUTH_DEADLINE, CONTENT_TYPE_XML, LOGIN_PATH
from ..errors import (
    BlockTimeError,
    DeadlineExceededError,
    FritzNASError,
    InputValidationError,
    LogoutDeadlineError,
    LogoutError,
    SessionInvalidError,
)
from ..logging_setup import log
from ..network.client import Deadline, execute
from ..session import build_session, endpoint
from .challenge import solve_challenge
from .session_info import SessionInfo, parse_session_info


@dataclass(frozen=True)
class Session:
    """Session id issued by the device; pass it to every NAS call."""

    sid: str

    def __str__(self) -> str:
        return self.sid


def validate_auth_input(address: str, username: str, password: str) -> None:
    if not username:
        raise InputValidationError("username", "please provide username for authentication")
    if not password:
        raise InputValidationError("password", "please provide password for authentication")
    if not address:
        raise InputValidationError("address", "please provide the address of the target device")


def fetch_session_info(
    http: requests.Session, address: str, deadline: Deadline
) -> SessionInfo:
    """GET login_sid.lua: the current SessionInfo, carrying a fresh challenge."""
    body = execute(
        http,
        endpoint(address, LOGIN_PATH),
        deadline,
        method="GET",
        expected_type=CONTENT_TYPE_XML,
    )
    return parse_session_info(body)


def submit_response(
    http: requests.Session,
    address: str,
    username: str,
    response: str,
    deadline: Deadline,
) -> SessionInfo:
    """
    POST the solved challenge; the reply is a SessionInfo with the new SID.

    Only HTTP 200 is required here, the content type is not checked.
    """
    body = execute(
        http,
        endpoint(address, LOGIN_PATH),
        deadline,
        form={"username": username, "response": response},
        expected_type=None,
    )
    return parse_session_info(body)


def authenticate(
    address: str,
    username: str,
    password: str,
    http: requests.Session | None = None,
    deadline: float = AUTH_DEADLINE,
) -> Session:
    """
    Log in to the device at *address* and return the new Session.

    Steps:
      1. GET login_sid.lua?version=2 -> SessionInfo with the challenge
      2. solve the challenge (MD5 for v1, double PBKDF2 for v2)
      3. POST username + response -> SessionInfo with the SID

    Both requests share one deadline.  An empty or all-zero SID fails with
    BlockTimeError when the device reports a cooldown, SessionInvalidError
    otherwise.  The caller owns the returned session and must call
    :func:`close` on every exit path (or use :func:`open_session`).
    """
    validate_auth_input(address, username, password)
    if http is None:
        with build_session() as http:
            return authenticate(address, username, password, http, deadline)
    budget = Deadline(deadline)

    info = fetch_session_info(http, address, budget)
    log.debug(
        "Login challenge received (%s)",
        "PBKDF2" if info.challenge.startswith("2$") else "MD5",
    )
    response = solve_challenge(info.challenge, password)

    result = submit_response(http, address, username, response, budget)
    if not result.authenticated:
        if result.block_time > 0:
            raise BlockTimeError(result.block_time)
        raise SessionInvalidError()

    log.info("Login successful for user %r on %s", username, address)
    return Session(result.sid)


def close(
    address: str,
    session: Session | str,
    http: requests.Session | None = None,
    deadline: float = AUTH_DEADLINE,
) -> None:
    """
    Log *session* out of the device.

    Raises LogoutError (chained to the underlying failure) when the device
    does not confirm with HTTP 200; LogoutDeadlineError, also a
    DeadlineExceededError, when the deadline runs out first.  The session
    value itself stays as it was; only the remote confirmation is missing.
    """
    sid = str(session)
    if http is None:
        with build_session() as http:
            return close(address, session, http, deadline)
    try:
        execute(
            http,
            endpoint(address, LOGIN_PATH),
            Deadline(deadline),
            form={"logout": sid},
            expected_type=None,
        )
    except DeadlineExceededError as exc:
        raise LogoutDeadlineError(sid, exc.deadline) from exc
    except FritzNASError as exc:
        raise LogoutError(sid, str(exc)) from exc
    log.info("Logged out session %s", sid)


@contextmanager
def open_session(
    address: str,
    username: str,
    password: str,
    http: requests.Session | None = None,
) -> Iterator[Session]:
    """
    Authenticate on entry and log out on every exit path::

        with open_session(address, "admin", password) as session:
            NASClient(session, address).list_directory("/")

    A failed logout is raised when the block completed normally.  When the
    block is already raising, the logout failure is only logged so the
    original error reaches the caller.
    """
    if http is None:
        with build_session() as http:
            with open_session(address, username, password, http=http) as session:
                yield session
        return

    session = authenticate(address, username, password, http=http)
    try:
        yield session
    except BaseException:
        try:
            close(address, session, http=http)
        except LogoutError as exc:
            log.warning("%s", exc)
        raise
    close(address, session, http=http)
