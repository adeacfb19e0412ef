"""
The encrypt and decrypt pipelines, built from the key, cipher, pack and
transport modules.

    environment path -> pack -> serialize -> encrypt -> wrap -> vault text
"""

import logging
import pathlib

from . import cipher, packs, transport
from .keys import Key
from .packs import EnvironmentPack
from .utils import VaultUnreadable, WriteError

log = logging.getLogger(__name__)


def pack_and_serialize(path: pathlib.Path) -> bytes:
    pack = packs.from_path(path)
    log.debug(f"Packed {path} as {type(pack).__name__}")
    return pack.serialize()


def deserialize_and_unpack(data: bytes, path: pathlib.Path) -> EnvironmentPack:
    pack = packs.deserialize(data)
    log.debug(f"Unpacking {type(pack).__name__} to {path}")
    pack.unpack(path)
    return pack


def encrypt_path(key: Key, path: pathlib.Path) -> str:
    """Pack and encrypt an environment file or directory into vault text."""
    plaintext = pack_and_serialize(path)
    log.debug(f"Encrypting {len(plaintext)} bytes from {path}")
    return transport.wrap(cipher.encrypt(key, plaintext))


def decrypt_vault(key: Key, text: str) -> EnvironmentPack:
    ciphertext = transport.unwrap(text)
    log.debug(f"Decrypting {len(ciphertext)} bytes of vault ciphertext")
    return packs.deserialize(cipher.decrypt(key, ciphertext))


def decrypt_vault_to(key: Key, text: str, path: pathlib.Path) -> EnvironmentPack:
    pack = decrypt_vault(key, text)
    log.debug(f"Unpacking {type(pack).__name__} to {path}")
    pack.unpack(path)
    return pack


def read_vault(path: pathlib.Path) -> str:
    log.debug(f"Reading vault {path}")
    try:
        return path.read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as error:
        raise VaultUnreadable(f"Failed to read vault {path}: {error}") from error


def write_vault(path: pathlib.Path, text: str) -> None:
    log.debug(f"Writing vault {path}")
    try:
        path.write_text(f'{text}\n', encoding='utf-8')
    except OSError as error:
        raise WriteError(f"Failed to write vault {path}: {error}") from error
