"""
AES-256-GCM encryption of a single in-memory payload.

The output of encrypt() is ``nonce || ciphertext || tag``. A fresh random nonce
is drawn for every call; a nonce must never be used twice with the same key.
"""

import os

import cryptography.exceptions
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from .keys import Key
from .utils import AuthenticationFailed, CryptoError, TruncatedInput

NONCE_SIZE = 12
TAG_SIZE = 16


def encrypt(key: Key, plaintext: bytes) -> bytes:
    nonce = os.urandom(NONCE_SIZE)
    try:
        ciphertext = AESGCM(key.material).encrypt(nonce, plaintext, None)
    except (ValueError, OverflowError) as error:
        raise CryptoError(f"Encryption failed: {error}") from error
    return nonce + ciphertext


def decrypt(key: Key, data: bytes) -> bytes:
    if len(data) < NONCE_SIZE:
        raise TruncatedInput("Ciphertext too short: missing nonce")

    nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
    try:
        return AESGCM(key.material).decrypt(nonce, ciphertext, None)
    except (cryptography.exceptions.InvalidTag, ValueError) as error:
        # Wrong key, corruption and tampering are deliberately indistinguishable.
        raise AuthenticationFailed("Decryption failed") from error
