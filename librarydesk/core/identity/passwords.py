from __future__ import annotations

import secrets
from dataclasses import dataclass

from cryptography.hazmat.primitives.kdf.scrypt import Scrypt


def _scrypt_hash(password: str, salt: bytes, n: int = 2**14, r: int = 8, p: int = 1) -> bytes:
    kdf = Scrypt(salt=salt, length=32, n=n, r=r, p=p)
    return kdf.derive(password.encode("utf-8"))


@dataclass(frozen=True)
class PasswordHasher:
    """
    Salted scrypt hashes encoded as ``scrypt$n$r$p$<salt hex>$<digest hex>``.
    Verification reads the KDF parameters from the stored value, so raising
    ``n`` later does not invalidate existing accounts.
    """

    n: int = 2**14
    r: int = 8
    p: int = 1

    def hash(self, password: str) -> str:
        salt = secrets.token_bytes(16)
        digest = _scrypt_hash(password, salt, n=self.n, r=self.r, p=self.p)
        return f"scrypt${self.n}${self.r}${self.p}${salt.hex()}${digest.hex()}"

    def verify(self, password: str, encoded: str) -> bool:
        try:
            scheme, n, r, p, salt_hex, digest_hex = str(encoded).split("$")
            if scheme != "scrypt":
                return False
            salt = bytes.fromhex(salt_hex)
            expected = bytes.fromhex(digest_hex)
            digest = _scrypt_hash(password, salt, n=int(n), r=int(r), p=int(p))
        except ValueError:
            return False
        return secrets.compare_digest(digest, expected)
