"""SessionInfo document returned by login_sid.lua."""

from dataclasses import dataclass, field

from bs4 import BeautifulSoup

from ..config import INVALID_SID
from ..errors import DecodeError

# lxml's XML parser, so tag names keep their case (SID, BlockTime, ...)
_XML_PARSER = "xml"


@dataclass(frozen=True)
class User:
    name: str
    last: bool = False


@dataclass(frozen=True)
class SessionInfo:
    """
    Parsed login descriptor, e.g.::

        <SessionInfo>
          <SID>0000000000000000</SID>
          <Challenge>2$60000$492c...$6000$16a8...</Challenge>
          <BlockTime>0</BlockTime>
          <Rights></Rights>
          <Users><User last="1">admin</User></Users>
        </SessionInfo>
    """

    sid: str = ""
    challenge: str = ""
    block_time: int = 0
    rights: str = ""
    users: tuple[User, ...] = field(default_factory=tuple)

    @property
    def authenticated(self) -> bool:
        return bool(self.sid) and self.sid != INVALID_SID


def parse_session_info(data: bytes | str) -> SessionInfo:
    """Decode a SessionInfo XML body; raises DecodeError when it is not one."""
    soup = BeautifulSoup(data, _XML_PARSER)
    root = soup.find("SessionInfo")
    if root is None:
        raise DecodeError("response is not a SessionInfo document")

    def _text(tag: str) -> str:
        el = root.find(tag, recursive=False)
        return el.get_text(strip=True) if el is not None else ""

    block_time_raw = _text("BlockTime") or "0"
    if not (block_time_raw.isascii() and block_time_raw.isdigit()):
        raise DecodeError(f"BlockTime {block_time_raw!r} is not a non-negative integer")

    users: list[User] = []
    users_el = root.find("Users", recursive=False)
    if users_el is not None:
        for el in users_el.find_all("User", recursive=False):
            users.append(User(name=el.get_text(strip=True), last=el.get("last") == "1"))

    return SessionInfo(
        sid=_text("SID"),
        challenge=_text("Challenge"),
        block_time=int(block_time_raw),
        rights=_text("Rights"),
        users=tuple(users),
    )
