"""NAS file operations on top of an authenticated session."""

import io
from typing import BinaryIO

import requests

from ..auth.login import Session
from ..config import (
    BROWSE_DEFAULTS,
    CONTENT_TYPE_JSON,
    NAS_API_PATH,
    NAS_GET_PATH,
    NAS_SCRIPT_PATH,
    NAS_UPLOAD_PATH,
    READ_DEADLINE,
    UPLOAD_FIELD,
    WRITE_DEADLINE,
)
from ..errors import InputValidationError
from ..logging_setup import log
from ..network.client import Deadline, decode_json, execute
from ..session import build_session, endpoint
from .models import (
    BrowseResult,
    CreateDirResult,
    DeleteResult,
    MoveResult,
    PutFileResult,
    RenameInput,
    RenameResult,
)

Params = list[tuple[str, str]]


# ---------------------------------------------------------------------------
# Form builders
# ---------------------------------------------------------------------------

def _action(sid: str, action: str) -> Params:
    return [("sid", sid), ("c", "files"), ("a", action)]


def browse_params(sid: str, path: str | None = None, /, **extra: str) -> Params:
    """
    Form for ``a=browse``.  ``path`` defaults to the storage root; *extra*
    (e.g. ``limit``, ``sorting``) replaces the browse defaults but can not
    override ``sid``, ``c``, ``a`` or ``path``.
    """
    params = _action(sid, "browse")
    params.append(("path", path or "/"))
    fixed = {key for key, _ in params}
    options = {**BROWSE_DEFAULTS, **extra}
    params.extend((k, str(v)) for k, v in options.items() if k not in fixed)
    return params


def create_dir_params(sid: str, name: str, path: str) -> Params:
    return _action(sid, "create_dir") + [
        ("path", path),
        ("name", name),
        ("parents", "false"),
    ]


def get_params(sid: str, path: str) -> Params:
    return [("sid", sid), ("script", NAS_SCRIPT_PATH), ("c", "files"), ("a", "get"), ("path", path)]


def rename_params(sid: str, items: tuple[RenameInput, ...]) -> Params:
    params = _action(sid, "rename")
    for i, item in enumerate(items, start=1):
        params.append((f"paths[{i}][path]", item.path))
        params.append((f"paths[{i}][newName]", item.new_name))
    return params


def delete_params(sid: str, paths: tuple[str, ...]) -> Params:
    params = _action(sid, "delete")
    params.extend((f"paths[{i}]", p) for i, p in enumerate(paths, start=1))
    return params


def move_params(sid: str, target: str, paths: tuple[str, ...]) -> Params:
    params = _action(sid, "move")
    params.append(("target", target))
    params.extend((f"paths[{i}]", p) for i, p in enumerate(paths, start=1))
    return params


def split_remote_path(remote_path: str) -> tuple[str, str]:
    """``'/Dokumente/a.pdf'`` -> ``('/Dokumente', 'a.pdf')``."""
    directory, _, filename = remote_path.rpartition("/")
    if not filename:
        raise InputValidationError(
            "remote path", f"remote path {remote_path!r} does not end in a file name"
        )
    return directory, filename


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class NASClient:
    """
    File operations against the FRITZ!Box NAS.

    Read calls (browse, download, upload) run under a 30 s deadline, the
    mutating calls (create_dir, rename, delete, move) under 60 s.  Nothing
    is retried; every failure is raised on first occurrence.

    Without an explicit ``http`` session the client builds its own; use it
    as a context manager (or call :meth:`close`) to release it.
    """

    def __init__(
        self,
        session: Session | str,
        address: str,
        http: requests.Session | None = None,
        read_deadline: float = READ_DEADLINE,
        write_deadline: float = WRITE_DEADLINE,
    ) -> None:
        if not str(session):
            raise InputValidationError("session")
        if not address:
            raise InputValidationError("address", "please provide the address of the target device")
        self.sid = str(session)
        self.address = address
        self._owns_http = http is None
        self.http = http or build_session()
        self.read_deadline = read_deadline
        self.write_deadline = write_deadline

    def close(self) -> None:
        """Release the HTTP session, if this client created it."""
        if self._owns_http:
            self.http.close()

    def __enter__(self) -> "NASClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _call(self, path: str, params: Params, deadline: float) -> bytes:
        return execute(self.http, endpoint(self.address, path), Deadline(deadline), form=params)

    def list_directory(self, path: str | None = None, **params: str) -> BrowseResult:
        """List *path* (the storage root when omitted)."""
        body = self._call(NAS_API_PATH, browse_params(self.sid, path, **params), self.read_deadline)
        result = BrowseResult.from_json(decode_json(body))
        log.debug(
            "Browsed %s: %d files, %d directories",
            path or "/", len(result.files), len(result.directories),
        )
        return result

    def create_dir(self, name: str, path: str) -> CreateDirResult:
        """Create directory *name* inside *path*."""
        if not name:
            raise InputValidationError("name")
        body = self._call(NAS_API_PATH, create_dir_params(self.sid, name, path), self.write_deadline)
        return CreateDirResult.from_json(decode_json(body))

    def get_file(self, path: str) -> BinaryIO:
        """
        Download *path* and return its content as an in-memory binary stream.

        No content type is enforced on success; a non-200 answer still goes
        through the structured-error path.
        """
        if not path:
            raise InputValidationError("path")
        body = execute(
            self.http,
            endpoint(self.address, NAS_GET_PATH),
            Deadline(self.read_deadline),
            form=get_params(self.sid, path),
            expected_type=None,
        )
        log.debug("Downloaded %s (%d bytes)", path, len(body))
        return io.BytesIO(body)

    def put_file(self, remote_path: str, data: BinaryIO) -> PutFileResult:
        """
        Upload the whole of *data* to *remote_path*.

        The directory part goes into the ``dir`` field, the last path segment
        becomes the file name of the ``UploadFile`` part.  Check
        :attr:`PutFileResult.ok`: the device answers HTTP 200 with a failure
        code when, for example, the directory does not exist.
        """
        directory, filename = split_remote_path(remote_path)
        content = data.read()
        body = execute(
            self.http,
            endpoint(self.address, NAS_UPLOAD_PATH),
            Deadline(self.read_deadline),
            form=[("sid", self.sid), ("dir", directory)],
            files={UPLOAD_FIELD: (filename, content)},
            expected_type=CONTENT_TYPE_JSON,
        )
        result = PutFileResult.from_json(decode_json(body))
        log.debug(
            "Uploaded %s (%d bytes): result=%s uploads=%s",
            remote_path, len(content), result.raw_result_code, result.raw_upload_result,
        )
        return result

    def rename(self, *items: RenameInput) -> RenameResult:
        """Rename one or more files/directories; returns the affected count."""
        if not items:
            raise InputValidationError(
                "rename operands", "no parameters supplied, cannot execute rename"
            )
        body = self._call(NAS_API_PATH, rename_params(self.sid, items), self.write_deadline)
        return RenameResult.from_json(decode_json(body))

    def delete(self, *paths: str) -> DeleteResult:
        """Delete one or more files/directories; returns the affected count."""
        if not paths:
            raise InputValidationError("paths", "no paths supplied, cannot execute delete")
        body = self._call(NAS_API_PATH, delete_params(self.sid, paths), self.write_deadline)
        return DeleteResult.from_json(decode_json(body))

    def move(self, target: str, *paths: str) -> MoveResult:
        """Move *paths* into the directory *target*; a separate action from rename."""
        if not target:
            raise InputValidationError("target")
        if not paths:
            raise InputValidationError("paths", "no paths supplied, cannot execute move")
        body = self._call(NAS_API_PATH, move_params(self.sid, target, paths), self.write_deadline)
        return MoveResult.from_json(decode_json(body))
