"""Encryption of stored test-user passwords.

AES-256-GCM with a key derived by scrypt from a secret and a per-record
salt. Ciphertext format: base64 `salt:iv:tag:encrypted`.
"""

from __future__ import annotations

import base64
import os
from collections.abc import Iterable
from typing import Any

from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from storyrunner.models import Credentials


SALT_LENGTH = 32
IV_LENGTH = 16
TAG_LENGTH = 16
KEY_LENGTH = 32


class InvalidCiphertextError(ValueError):
    pass


def _secret(secret: str | None) -> str:
    key = secret or os.environ.get("ENCRYPTION_KEY")
    if not key:
        raise RuntimeError("ENCRYPTION_KEY environment variable is not set")
    return key


def derive_key(secret: str, salt: bytes) -> bytes:
    kdf = Scrypt(salt=salt, length=KEY_LENGTH, n=2**14, r=8, p=1)
    return kdf.derive(secret.encode("utf-8"))


def encrypt(plaintext: str, secret: str | None = None) -> str:
    salt = os.urandom(SALT_LENGTH)
    iv = os.urandom(IV_LENGTH)
    key = derive_key(_secret(secret), salt)
    sealed = AESGCM(key).encrypt(iv, plaintext.encode("utf-8"), None)
    encrypted, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
    return ":".join(
        base64.b64encode(part).decode("ascii") for part in (salt, iv, tag, encrypted)
    )


def decrypt(ciphertext: str, secret: str | None = None) -> str:
    parts = ciphertext.split(":")
    if len(parts) != 4:
        raise InvalidCiphertextError("Invalid ciphertext format")
    try:
        salt, iv, tag, encrypted = (base64.b64decode(p, validate=True) for p in parts)
    except ValueError as e:
        raise InvalidCiphertextError("Invalid ciphertext format") from e
    key = derive_key(_secret(secret), salt)
    return AESGCM(key).decrypt(iv, encrypted + tag, None).decode("utf-8")


def credentials_by_role(
    test_users: Iterable[dict[str, Any]], secret: str | None = None
) -> dict[str, Credentials]:
    """Decrypt enabled test users into a role -> Credentials map.

    Users whose password cannot be decrypted are left out.
    """
    creds: dict[str, Credentials] = {}
    for user in test_users:
        if not user.get("is_enabled", True):
            continue
        role = user["role"]
        try:
            password = decrypt(user["password_encrypted"], secret)
        except Exception as e:
            print(f"[crypto] Failed to decrypt password for role {role}: {e!r}")
            continue
        creds[role] = Credentials(username=user["username"], password=password)
    return creds
