"""Encoding and decoding of announcement datagrams."""

from pydantic import ValidationError

from lan_discovery.discovery.errors import DecodeError
from lan_discovery.discovery.models import Announcement


def encode_announcement(announcement: Announcement) -> bytes:
    return announcement.model_dump_json().encode("utf-8")


def decode_announcement(data: bytes) -> Announcement:
    """
    Parse a datagram into an Announcement.

    Unknown fields are ignored. Anything else that is not a JSON object with
    a string ``name`` and an integer ``port`` in 0..65535 raises DecodeError.
    """
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError(f"payload is not UTF-8: {e}") from e

    try:
        return Announcement.model_validate_json(text)
    except ValidationError as e:
        raise DecodeError(f"invalid announcement: {e.error_count()} error(s)") from e
