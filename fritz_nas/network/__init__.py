"""HTTP request execution submodule."""

from fritz_nas.network.client import (
    Deadline,
    decode_json,
    encode_form,
    execute,
    media_type,
)

__all__ = [
    "Deadline",
    "decode_json",
    "encode_form",
    "execute",
    "media_type",
]
