"""File identifiers.

An identifier is the base32 encoding of the raw uploaded filename followed by
``ID_LENGTH`` random base62 characters. It is used both as the public
download token and as the name of the stored file, so it must only contain
characters that are harmless in a path segment and in a URL.
"""

import base64
import binascii
import re
import secrets
import string

from linkdrop.errors import FilenameTooLong

ID_LENGTH = 32
MAX_ID_LENGTH = 255

BASE62 = string.digits + string.ascii_uppercase + string.ascii_lowercase
PADDING = "="

_ID_RE = re.compile("[0-9A-Za-z" + re.escape(PADDING) + "]+")


def encode_name(original_filename: bytes | str) -> str:
    if isinstance(original_filename, str):
        original_filename = original_filename.encode()
    return base64.b32encode(original_filename).decode("ascii")


def random_suffix(length: int = ID_LENGTH) -> str:
    """Uniqueness token. Not a secret: the alphabet and length are public."""
    return "".join(secrets.choice(BASE62) for _ in range(length))


def generate(
    original_filename: bytes | str,
    suffix_length: int = ID_LENGTH,
    max_length: int = MAX_ID_LENGTH,
) -> str:
    """Build a _probably_ unique identifier for ``original_filename``.

    The probability of a collision depends on ``suffix_length`` and on the
    number of identifiers generated for the same filename so far.
    """
    prefix = encode_name(original_filename)
    if len(prefix) + suffix_length > max_length:
        raise FilenameTooLong(
            f"encoded filename is {len(prefix)} characters, "
            f"limit is {max_length - suffix_length}"
        )
    return prefix + random_suffix(suffix_length)


def validate(candidate: str, max_length: int = MAX_ID_LENGTH) -> str | None:
    """Return ``candidate`` if it is a well-formed identifier, else None.

    Only ASCII letters, digits and the padding character are accepted, so
    separators, dots and control characters never reach a path join.
    """
    if not candidate or not ID_LENGTH <= len(candidate) <= max_length:
        return None
    if not _ID_RE.fullmatch(candidate):
        return None
    return candidate


def decode_name(identifier: str) -> bytes | None:
    """Recover the raw filename bytes embedded in ``identifier``."""
    if len(identifier) < ID_LENGTH:
        return None
    prefix = identifier[: len(identifier) - ID_LENGTH]
    try:
        return base64.b32decode(prefix)
    except (binascii.Error, ValueError):
        return None
