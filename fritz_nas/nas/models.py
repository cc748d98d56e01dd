"""
Typed results of the NAS API (nas/api/data.lua and the upload CGI).

The device mixes ``camelCase`` and ``PascalCase`` keys (``writeRight`` in a
browse result, ``ResultCode`` in an upload result), so every lookup below
is case-insensitive.  Missing optional fields fall back to empty values;
fields of the wrong JSON type raise DecodeError.
"""

import dataclasses
import enum
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping

from ..errors import DecodeError

_MISSING = object()


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _get(obj: Mapping[str, Any], key: str, default: Any = _MISSING) -> Any:
    if key in obj:
        return obj[key]
    lowered = key.lower()
    for k, v in obj.items():
        if k.lower() == lowered:
            return v
    return default


def _object(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, dict):
        raise DecodeError(f"{what}: expected a JSON object, got {type(value).__name__}")
    return value


def _str(obj: Mapping[str, Any], key: str) -> str:
    value = _get(obj, key, "")
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError(f"{key}: expected a string, got {value!r}")
    return value


def _bool(obj: Mapping[str, Any], key: str) -> bool:
    value = _get(obj, key, False)
    if not isinstance(value, bool):
        raise DecodeError(f"{key}: expected a boolean, got {value!r}")
    return value


def _int(obj: Mapping[str, Any], key: str) -> int:
    value = _get(obj, key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"{key}: expected an integer, got {value!r}")
    return value


def _float(obj: Mapping[str, Any], key: str) -> float:
    value = _get(obj, key, 0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"{key}: expected a number, got {value!r}")
    return float(value)


def decode_timestamp(value: Any) -> datetime:
    """Epoch seconds (a JSON integer) -> timezone-aware UTC datetime."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise DecodeError(f"error decoding timestamp: {value!r} is not an integer")
    if value < 0:
        raise DecodeError(f"error decoding timestamp: {value!r} is negative")
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise DecodeError(f"error decoding timestamp: {value!r} is out of range") from exc


def encode_timestamp(value: datetime) -> int:
    """Inverse of :func:`decode_timestamp`."""
    return int(value.timestamp())


def _timestamp(obj: Mapping[str, Any], key: str = "timestamp") -> datetime | None:
    value = _get(obj, key, None)
    if value is None:
        return None
    return decode_timestamp(value)


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return encode_timestamp(value)
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _Model:
    def to_dict(self) -> dict[str, Any]:
        """JSON-ready dict; timestamps become epoch seconds, enums their wire value."""
        return _plain(dataclasses.asdict(self))


# ---------------------------------------------------------------------------
# Browse
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DiskInfo(_Model):
    used: float = 0.0
    total: float = 0.0
    free: float = 0.0

    @classmethod
    def from_json(cls, data: Any) -> "DiskInfo":
        obj = _object(data, "diskInfo")
        return cls(used=_float(obj, "used"), total=_float(obj, "total"), free=_float(obj, "free"))


@dataclass(frozen=True)
class File(_Model):
    path: str
    filename: str = ""
    type: str = ""
    storage_type: str = ""      # internal_storage, external_storage
    shared: bool = False
    size: int = 0
    width: int = 0
    height: int = 0
    timestamp: datetime | None = None

    @classmethod
    def from_json(cls, data: Any) -> "File":
        obj = _object(data, "file")
        return cls(
            path=_str(obj, "path"),
            filename=_str(obj, "filename"),
            type=_str(obj, "type"),
            storage_type=_str(obj, "storageType"),
            shared=_bool(obj, "shared"),
            size=_int(obj, "size"),
            width=_int(obj, "width"),
            height=_int(obj, "height"),
            timestamp=_timestamp(obj),
        )


@dataclass(frozen=True)
class Directory(_Model):
    path: str
    filename: str = ""
    type: str = "directory"
    storage_type: str = ""
    shared: bool = False
    timestamp: datetime | None = None

    @classmethod
    def from_json(cls, data: Any) -> "Directory":
        obj = _object(data, "directory")
        return cls(
            path=_str(obj, "path"),
            filename=_str(obj, "filename"),
            type=_str(obj, "type") or "directory",
            storage_type=_str(obj, "storageType"),
            shared=_bool(obj, "shared"),
            timestamp=_timestamp(obj),
        )


@dataclass(frozen=True)
class Browse(_Model):
    """Pagination cursor of a browse call."""

    path: str = ""
    index: int = 0
    total_count: int = 0
    finished: bool = False
    mode: str = ""
    limit: int = 0
    sorting: str = ""

    @classmethod
    def from_json(cls, data: Any) -> "Browse":
        obj = _object(data, "browse")
        return cls(
            path=_str(obj, "path"),
            index=_int(obj, "index"),
            total_count=_int(obj, "totalCount"),
            finished=_bool(obj, "finished"),
            mode=_str(obj, "mode"),
            limit=_int(obj, "limit"),
            sorting=_str(obj, "sorting"),
        )


def _list(obj: Mapping[str, Any], key: str) -> list[Any]:
    value = _get(obj, key, None)
    if value is None:
        return []
    if not isinstance(value, list):
        raise DecodeError(f"{key}: expected a list, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class BrowseResult(_Model):
    disk_info: DiskInfo = field(default_factory=DiskInfo)
    files: tuple[File, ...] = ()
    directories: tuple[Directory, ...] = ()
    write_right: bool = False
    browse: Browse = field(default_factory=Browse)

    @classmethod
    def from_json(cls, data: Any) -> "BrowseResult":
        obj = _object(data, "browse result")
        disk_info = _get(obj, "diskInfo", None)
        browse = _get(obj, "browse", None)
        return cls(
            disk_info=DiskInfo.from_json(disk_info) if disk_info is not None else DiskInfo(),
            files=tuple(File.from_json(f) for f in _list(obj, "files")),
            directories=tuple(Directory.from_json(d) for d in _list(obj, "directories")),
            write_right=_bool(obj, "writeRight"),
            browse=Browse.from_json(browse) if browse is not None else Browse(),
        )


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CreateDirResult(_Model):
    directory: Directory

    @classmethod
    def from_json(cls, data: Any) -> "CreateDirResult":
        obj = _object(data, "create_dir result")
        return cls(directory=Directory.from_json(_get(obj, "directory", {})))


@dataclass(frozen=True)
class RenameResult(_Model):
    rename_count: int = 0

    @classmethod
    def from_json(cls, data: Any) -> "RenameResult":
        return cls(rename_count=_int(_object(data, "rename result"), "renameCount"))


@dataclass(frozen=True)
class DeleteResult(_Model):
    delete_count: int = 0

    @classmethod
    def from_json(cls, data: Any) -> "DeleteResult":
        return cls(delete_count=_int(_object(data, "delete result"), "deleteCount"))


@dataclass(frozen=True)
class MoveResult(_Model):
    move_count: int = 0

    @classmethod
    def from_json(cls, data: Any) -> "MoveResult":
        return cls(move_count=_int(_object(data, "move result"), "moveCount"))


@dataclass(frozen=True)
class RenameInput:
    """One rename operand: the object at ``path`` gets the name ``new_name``."""

    path: str
    new_name: str


# ---------------------------------------------------------------------------
# Upload
# ---------------------------------------------------------------------------

class UploadResult(enum.Enum):
    """``SuccessfulUploads`` of an upload response."""

    FAIL = "0"
    OK = "1"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "UploadResult":
        return cls.UNKNOWN


class ResultCode(enum.Enum):
    """``ResultCode`` of an upload response."""

    OK = "0"             # also returned when nothing was uploaded
    NO_SESSION = "5"
    DIR_NOT_EXIST = "9"
    UNKNOWN = "unknown"

    @classmethod
    def _missing_(cls, value: object) -> "ResultCode":
        return cls.UNKNOWN


@dataclass(frozen=True)
class PutFileResult(_Model):
    """
    Example response::

        {"sid": "e5363f0a80aacd5a", "dir": "/Dokumente",
         "Filename": "FRITZ-Picture.jpg",
         "SuccessfulUploads": "1", "ResultCode": "0"}

    An HTTP 200 does not mean the upload worked; check :attr:`ok`.
    """

    sid: str
    dir: str
    filename: str
    upload_result: UploadResult
    result_code: ResultCode
    raw_upload_result: str = ""
    raw_result_code: str = ""

    @property
    def ok(self) -> bool:
        return self.result_code is ResultCode.OK and self.upload_result is UploadResult.OK

    @classmethod
    def from_json(cls, data: Any) -> "PutFileResult":
        obj = _object(data, "upload result")
        raw_upload = _code(obj, "SuccessfulUploads")
        raw_result = _code(obj, "ResultCode")
        return cls(
            sid=_str(obj, "sid"),
            dir=_str(obj, "dir"),
            filename=_str(obj, "Filename"),
            upload_result=UploadResult(raw_upload),
            result_code=ResultCode(raw_result),
            raw_upload_result=raw_upload,
            raw_result_code=raw_result,
        )


def _code(obj: Mapping[str, Any], key: str) -> str:
    # string-coded on the wire, but tolerate a bare JSON integer
    value = _get(obj, key, "")
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    if not isinstance(value, str):
        raise DecodeError(f"{key}: expected a string code, got {value!r}")
    return value
