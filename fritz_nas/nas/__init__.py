"""NAS submodule – file operations and their typed results."""

from fritz_nas.nas.client import NASClient
from fritz_nas.nas.models import (
    Browse,
    BrowseResult,
    CreateDirResult,
    DeleteResult,
    Directory,
    DiskInfo,
    File,
    MoveResult,
    PutFileResult,
    RenameInput,
    RenameResult,
    ResultCode,
    UploadResult,
)

__all__ = [
    "NASClient",
    "Browse",
    "BrowseResult",
    "CreateDirResult",
    "DeleteResult",
    "Directory",
    "DiskInfo",
    "File",
    "MoveResult",
    "PutFileResult",
    "RenameInput",
    "RenameResult",
    "ResultCode",
    "UploadResult",
]
