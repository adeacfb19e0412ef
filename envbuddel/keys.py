"""
Key material and its textual encodings.

A key is always exactly 32 bytes. Its canonical text form is Base62, which
contains only letters and digits and can be pasted into a shell or a YAML
pipeline variable without quoting. URL-safe Base64 is supported as well.
"""

import base64
import binascii
import os
import pathlib
import re
import string
import typing

import attr

from .utils import (
    EncodingError,
    InvalidKeyLength,
    KeyfileEmpty,
    KeyfileUnreadable,
    WriteError,
)

KEY_SIZE = 32

B62_ALPHABET = string.digits + string.ascii_uppercase + string.ascii_lowercase
B62_INDEX = {char: index for index, char in enumerate(B62_ALPHABET)}

URLSAFE_B64 = re.compile(r'[A-Za-z0-9_-]*')


def b62encode(data: bytes) -> str:
    """Encode bytes as Base62, keeping each leading zero byte as a '0'."""
    value = int.from_bytes(data, 'big')
    chars: typing.List[str] = []
    while value:
        value, remainder = divmod(value, 62)
        chars.append(B62_ALPHABET[remainder])
    leading = len(data) - len(data.lstrip(b'\0'))
    return '0' * leading + ''.join(reversed(chars))


def b62decode(text: str) -> bytes:
    if not text:
        raise EncodingError("Failed to decode Base62 text: input is empty")

    value = 0
    for char in text:
        if char not in B62_INDEX:
            raise EncodingError(
                f"Failed to decode Base62 text: invalid character {char!r}")
        value = value * 62 + B62_INDEX[char]

    leading = len(text) - len(text.lstrip('0'))
    body = value.to_bytes((value.bit_length() + 7) // 8, 'big')
    return b'\0' * leading + body


def _check_length(instance, attribute, value: bytes) -> None:
    if len(value) != KEY_SIZE:
        raise InvalidKeyLength(
            f"Invalid key length: expected {KEY_SIZE} bytes, got {len(value)}")


@attr.s(frozen=True)
class Key:
    material: bytes = attr.ib(repr=False, validator=_check_length)

    @classmethod
    def generate(cls) -> 'Key':
        return cls(os.urandom(KEY_SIZE))

    @classmethod
    def from_bytes(cls, data: bytes) -> 'Key':
        return cls(bytes(data))

    @classmethod
    def from_base64(cls, text: str) -> 'Key':
        if not URLSAFE_B64.fullmatch(text) or len(text) % 4 == 1:
            raise EncodingError("Failed to decode Base64 key")
        try:
            data = base64.b64decode(text + '=' * (-len(text) % 4), altchars=b'-_')
        except (binascii.Error, ValueError) as error:
            raise EncodingError(f"Failed to decode Base64 key: {error}") from error
        return cls(data)

    @classmethod
    def from_printable(cls, text: str) -> 'Key':
        return cls(b62decode(text))

    def to_base64(self) -> str:
        return base64.urlsafe_b64encode(self.material).rstrip(b'=').decode('ascii')

    def to_printable(self) -> str:
        return b62encode(self.material)


@attr.s(frozen=True)
class KeySource:
    """Where a key was loaded from. Only used for diagnostics."""

    path: typing.Optional[pathlib.Path] = attr.ib(default=None)

    @classmethod
    def environment(cls) -> 'KeySource':
        return cls()

    @classmethod
    def file(cls, path: pathlib.Path) -> 'KeySource':
        return cls(path)

    @property
    def from_environment(self) -> bool:
        return self.path is None

    def __str__(self):
        if self.path is None:
            return "CI_SECRET"
        return str(self.path)


def load_key(
        explicit: typing.Optional[str],
        keyfile: pathlib.Path) -> typing.Tuple[Key, KeySource]:
    """
    Load a key, preferring an explicitly supplied value over the keyfile.

    CI systems inject the key through an environment variable so the keyfile
    never has to exist on the build machine.
    """
    if explicit is not None and explicit.strip():
        return Key.from_printable(explicit.strip()), KeySource.environment()

    try:
        content = keyfile.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as error:
        raise KeyfileUnreadable(
            f"Failed to read keyfile '{keyfile}': {error}") from error

    trimmed = content.strip()
    if not trimmed:
        raise KeyfileEmpty(f"Keyfile '{keyfile}' is empty")

    return Key.from_printable(trimmed), KeySource.file(keyfile)


def save_key(key: Key, path: pathlib.Path) -> None:
    try:
        path.write_text(f'{key.to_printable()}\n', encoding='utf-8')
    except OSError as error:
        raise WriteError(f"Failed to write keyfile '{path}': {error}") from error
