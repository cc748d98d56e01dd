"""
fritz_nas
=========
Python client for the NAS storage API of FRITZ!Box routers: challenge-response
login, session handling and file management (list, download, upload, rename,
delete, move, create directory).

Package structure
-----------------
fritz_nas/
├── __init__.py        – package init and public API
├── config.py          – endpoint paths, deadlines, env defaults
├── errors.py          – exception taxonomy
├── logging_setup.py   – colorlog console / file logging
├── session.py         – requests.Session factory, base URL helpers
├── cli.py             – argparse CLI (``python -m fritz_nas``)
├── network/           – request pipeline (deadline, content type, error bodies)
├── auth/              – challenge solver, SessionInfo, login / logout
└── nas/               – NAS operations and their result types

Quick start
-----------
    from fritz_nas import NASClient, open_session

    with open_session("http://fritz.box", "admin", "secret") as session:
        nas = NASClient(session, "http://fritz.box")
        for entry in nas.list_directory("/Dokumente").files:
            print(entry.filename, entry.size)
"""

from .auth import Session, authenticate, close, open_session, solve_challenge
from .errors import (
    BlockTimeError,
    ControllerError,
    ErrorKind,
    FritzNASError,
    RemoteStructuredError,
    SessionInvalidError,
)
from .nas import NASClient, RenameInput

__all__ = [
    "Session",
    "authenticate",
    "close",
    "open_session",
    "solve_challenge",
    "BlockTimeError",
    "ControllerError",
    "ErrorKind",
    "FritzNASError",
    "RemoteStructuredError",
    "SessionInvalidError",
    "NASClient",
    "RenameInput",
]
