"""
Generic request pipeline shared by the login handshake and every NAS call.

A call goes through four steps:

1. send the request under a :class:`Deadline` (``stream=True`` so the body
   is read by us, chunk by chunk, with the deadline re-checked in between);
2. compare the response media type against the one the call expects;
3. read the body;
4. on HTTP 200 return the raw bytes, otherwise turn the body into a
   :class:`RemoteStructuredError` when it is ``{"error": {...}}`` and into a
   plain :class:`RemoteError` when it is anything else.
"""

import json
import socket
import threading
import time
import urllib.parse
from typing import Any, Iterable, Mapping

import requests

from ..config import CONTENT_TYPE_FORM, CONTENT_TYPE_JSON, READ_CHUNK_SIZE
from ..errors import (
    ContentTypeMismatchError,
    DeadlineExceededError,
    DecodeError,
    RemoteError,
    RemoteStructuredError,
    TransportError,
)
from ..logging_setup import log

FormParams = Mapping[str, str] | Iterable[tuple[str, str]]


class Deadline:
    """Wall-clock budget for one logical call, possibly spanning several requests."""

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._expires_at = time.monotonic() + seconds

    @property
    def expired(self) -> bool:
        return time.monotonic() >= self._expires_at

    def remaining(self) -> float:
        """Seconds left; raises DeadlineExceededError once the budget is spent."""
        left = self._expires_at - time.monotonic()
        if left <= 0:
            raise DeadlineExceededError(self.seconds)
        return left


def media_type(content_type: str) -> str:
    """``'application/json; charset=utf-8'`` -> ``'application/json'``."""
    return content_type.split(";")[0].strip().lower()


def encode_form(params: FormParams) -> str:
    """URL-encode form parameters, preserving the order they were given in."""
    items = params.items() if isinstance(params, Mapping) else params
    return urllib.parse.urlencode(list(items))


def send(
    http: requests.Session,
    method: str,
    url: str,
    deadline: Deadline,
    **kwargs: Any,
) -> requests.Response:
    """Issue one request, translating requests exceptions into our taxonomy."""
    timeout = deadline.remaining()
    log.debug("%s %s (%.1fs left)", method, url, timeout)
    try:
        return http.request(method, url, timeout=timeout, stream=True, **kwargs)
    except requests.Timeout as exc:
        raise DeadlineExceededError(deadline.seconds) from exc
    except requests.RequestException as exc:
        raise TransportError(f"{method} {url} failed: {exc}") from exc


def _response_socket(resp: requests.Response) -> socket.socket | None:
    raw = getattr(resp, "raw", None)
    sock = getattr(getattr(raw, "connection", None), "sock", None)
    if sock is None:
        # Connection: close responses detach the socket from the connection;
        # it is still reachable through http.client's buffered reader.
        fp = getattr(getattr(raw, "_fp", None), "fp", None)
        sock = getattr(getattr(fp, "raw", None), "_sock", None)
    return sock


def abort_transfer(resp: requests.Response) -> None:
    """Shut down the socket under *resp*, waking up a read blocked on it."""
    sock = _response_socket(resp)
    if sock is None:
        log.debug("No socket to abort for %s", getattr(resp, "url", "response"))
        return
    try:
        sock.shutdown(socket.SHUT_RDWR)
    except OSError as exc:
        log.debug("Socket already gone while aborting transfer: %s", exc)


def read_body(resp: requests.Response, deadline: Deadline) -> bytes:
    """
    Read the whole body, aborting the transfer when the deadline elapses.

    The socket timeout only bounds a single ``recv``, so a peer trickling
    bytes could keep the read alive indefinitely.  A watchdog timer shuts
    the socket down once the budget is spent; the read then fails or ends
    early and DeadlineExceededError is raised.
    """
    chunks: list[bytes] = []
    fired = threading.Event()

    def _expire() -> None:
        fired.set()
        abort_transfer(resp)

    try:
        watchdog = threading.Timer(deadline.remaining(), _expire)
    except DeadlineExceededError:
        resp.close()
        raise
    watchdog.daemon = True
    watchdog.start()
    try:
        for chunk in resp.iter_content(chunk_size=READ_CHUNK_SIZE):
            chunks.append(chunk)
            deadline.remaining()
    except (requests.RequestException, OSError) as exc:
        if fired.is_set() or deadline.expired:
            raise DeadlineExceededError(deadline.seconds) from exc
        raise TransportError(f"failed reading response body: {exc}") from exc
    finally:
        watchdog.cancel()
        resp.close()
    if fired.is_set():
        raise DeadlineExceededError(deadline.seconds)
    return b"".join(chunks)


def decode_json(body: bytes) -> Any:
    try:
        return json.loads(body)
    except ValueError as exc:
        raise DecodeError(f"malformed JSON response: {exc}") from exc


def remote_error(status_code: int, body: bytes) -> RemoteError:
    """
    Build the error for a non-success response.

    The device reports failures as::

        {"error": {"message": "...", "data": {...}, "code": 400}}

    Anything that does not have that shape (HTML error pages, empty bodies,
    XML from the login endpoint) becomes a generic RemoteError with the raw
    status code and text.
    """
    text = body.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except ValueError:
        return RemoteError(status_code, text)

    error = payload.get("error") if isinstance(payload, dict) else None
    if not isinstance(error, dict) or not isinstance(error.get("message"), str):
        return RemoteError(status_code, text)

    code = error.get("code")
    if not isinstance(code, int) or isinstance(code, bool):
        code = status_code
    return RemoteStructuredError(error["message"], code, error.get("data"), text)


def execute(
    http: requests.Session,
    url: str,
    deadline: Deadline,
    *,
    method: str = "POST",
    form: FormParams | None = None,
    files: Mapping[str, Any] | None = None,
    expected_type: str | None = CONTENT_TYPE_JSON,
) -> bytes:
    """
    Run one request through the pipeline and return the raw success body.

    ``form`` is sent as ``application/x-www-form-urlencoded``; when ``files``
    is given the request becomes ``multipart/form-data`` instead and ``form``
    supplies its plain fields.  ``expected_type=None`` disables the
    content-type check.
    """
    kwargs: dict[str, Any] = {}
    if files is not None:
        kwargs["data"] = dict(form.items() if isinstance(form, Mapping) else form or [])
        kwargs["files"] = files
    elif form is not None:
        kwargs["data"] = encode_form(form)
        kwargs["headers"] = {"Content-Type": CONTENT_TYPE_FORM}

    resp = send(http, method, url, deadline, **kwargs)
    actual = media_type(resp.headers.get("Content-Type", ""))
    log.debug("%s %s -> HTTP %s (%s)", method, url, resp.status_code, actual or "no content-type")

    if expected_type is not None and actual != expected_type:
        resp.close()
        raise ContentTypeMismatchError(expected_type, actual)

    body = read_body(resp, deadline)
    if resp.status_code != requests.codes.ok:
        raise remote_error(resp.status_code, body)
    return body
