"""Challenge-response solvers for the FRITZ!OS login (login_sid.lua)."""

import hashlib

from ..errors import ChallengeFormatError, UnsupportedChallengeError

PBKDF2_KEY_LENGTH = 32


def md5_response(challenge: str, password: str) -> str:
    """
    Version 1 (legacy MD5) response, used by FRITZ!OS before 7.24.

    The MD5 digest is computed over the UTF-16LE encoding of
    ``"<challenge>-<password>"`` (no BOM, no terminating null);
    the response is ``"<challenge>-<hexdigest>"``.
    """
    data = f"{challenge}-{password}".encode("utf-16-le")
    return f"{challenge}-{hashlib.md5(data).hexdigest()}"


def pbkdf2_response(challenge: str, password: str) -> str:
    """
    Version 2 (PBKDF2) response, FRITZ!OS 7.24 and later.

    Challenge format: ``2$<iter1>$<salt1>$<iter2>$<salt2>``::

        key1 = PBKDF2-HMAC-SHA256(password, salt1, iter1)
        key2 = PBKDF2-HMAC-SHA256(key1,     salt2, iter2)

    The response is ``"<salt2>$<hex(key2)>"``, with salt2 echoed verbatim.
    """
    parts = challenge.split("$")
    if len(parts) != 5 or parts[0] != "2":
        raise UnsupportedChallengeError(challenge)

    # Decode everything before deriving anything.
    iter1 = _iterations(parts[1])
    salt1 = _salt(parts[2])
    iter2 = _iterations(parts[3])
    salt2 = _salt(parts[4])

    key1 = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), salt1, iter1, dklen=PBKDF2_KEY_LENGTH
    )
    key2 = hashlib.pbkdf2_hmac("sha256", key1, salt2, iter2, dklen=PBKDF2_KEY_LENGTH)
    return f"{parts[4]}${key2.hex()}"


def solve_challenge(challenge: str, password: str) -> str:
    """Select the scheme from the challenge format and return the login response."""
    parts = challenge.split("$")
    if len(parts) == 1:
        return md5_response(challenge, password)
    if len(parts) == 5 and parts[0] == "2":
        return pbkdf2_response(challenge, password)
    raise UnsupportedChallengeError(challenge)


def _salt(value: str) -> bytes:
    try:
        return bytes.fromhex(value)
    except ValueError as exc:
        raise ChallengeFormatError(f"challenge salt {value!r} is not valid hex") from exc


def _iterations(value: str) -> int:
    if not (value.isascii() and value.isdigit()) or int(value) < 1:
        raise ChallengeFormatError(
            f"challenge iteration count {value!r} is not a positive integer"
        )
    return int(value)
