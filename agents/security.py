"""Secret decryption seam for credentials stored alongside tool configuration."""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class SecretDecryptor(Protocol):
    def decrypt(self, ciphertext: str) -> str: ...


class PassthroughDecryptor:
    """Default decryptor for deployments that keep credentials in plain configuration."""

    def decrypt(self, ciphertext: str) -> str:
        return ciphertext
