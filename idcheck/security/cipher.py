"""AES-256-GCM encryption of personal data at rest.

Envelope format: ``nonce:ciphertext:tag``, each segment lowercase hex.
The 128-bit tag authenticates the ciphertext under the nonce; ``open``
verifies it before any plaintext is returned.
"""

import json
import os
import re
from collections.abc import Mapping
from typing import Any

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from idcheck.security.exceptions import FormatError, IntegrityError, KeyConfigurationError

_HEX_RE = re.compile(r"[0-9a-f]*")


class Cipher:
    """Seals and opens text records with a single process-wide key."""

    KEY_SIZE = 32
    NONCE_SIZE = 16
    TAG_SIZE = 16
    DELIMITER = ":"

    def __init__(self, key: bytes) -> None:
        if len(key) != self.KEY_SIZE:
            raise KeyConfigurationError(
                f"Encryption key must be {self.KEY_SIZE} bytes, got {len(key)}"
            )
        self._aead = AESGCM(key)

    @classmethod
    def from_hex(cls, key_hex: str) -> "Cipher":
        """Build a cipher from a 64-character hex key."""
        if not key_hex:
            raise KeyConfigurationError("Encryption key is not set")
        try:
            key = bytes.fromhex(key_hex)
        except ValueError as exc:
            raise KeyConfigurationError("Encryption key must be hex-encoded") from exc
        return cls(key)

    def seal(self, plaintext: str) -> str:
        """Encrypt text under a fresh random nonce."""
        nonce = os.urandom(self.NONCE_SIZE)
        sealed = self._aead.encrypt(nonce, plaintext.encode("utf-8"), None)
        ciphertext, tag = sealed[: -self.TAG_SIZE], sealed[-self.TAG_SIZE :]
        return self.DELIMITER.join((nonce.hex(), ciphertext.hex(), tag.hex()))

    def open(self, envelope: str) -> str:
        """Verify and decrypt an envelope produced by ``seal``.

        Raises:
            FormatError: if the envelope is structurally malformed.
            IntegrityError: if authentication fails (tampering or wrong key).
        """
        nonce, ciphertext, tag = self._split(envelope)
        try:
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
        except InvalidTag as exc:
            raise IntegrityError("Envelope failed authentication") from exc
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise FormatError("Decrypted payload is not valid UTF-8") from exc

    def seal_json(self, record: Mapping[str, Any]) -> str:
        """Serialize a record to canonical JSON and seal it."""
        return self.seal(
            json.dumps(dict(record), sort_keys=True, separators=(",", ":"), ensure_ascii=False)
        )

    def open_json(self, envelope: str) -> dict[str, Any]:
        """Open an envelope and parse the plaintext as a JSON object."""
        plaintext = self.open(envelope)
        try:
            record = json.loads(plaintext)
        except json.JSONDecodeError as exc:
            raise FormatError(f"Decrypted payload is not JSON: {exc}") from exc
        if not isinstance(record, dict):
            raise FormatError("Decrypted payload must be a JSON object")
        return record

    @classmethod
    def is_envelope(cls, text: str) -> bool:
        """Cheap shape check: three lowercase-hex segments with sized nonce and tag."""
        try:
            cls._split(text)
        except FormatError:
            return False
        return True

    @classmethod
    def _split(cls, envelope: str) -> tuple[bytes, bytes, bytes]:
        parts = envelope.split(cls.DELIMITER)
        if len(parts) != 3:
            raise FormatError("Envelope must have exactly three segments: nonce:ciphertext:tag")
        for part in parts:
            if not _HEX_RE.fullmatch(part) or len(part) % 2:
                raise FormatError("Envelope segments must be lowercase hex")
        nonce, ciphertext, tag = (bytes.fromhex(part) for part in parts)
        if len(nonce) != cls.NONCE_SIZE:
            raise FormatError(f"Invalid nonce length: {len(nonce)}, expected {cls.NONCE_SIZE}")
        if len(tag) != cls.TAG_SIZE:
            raise FormatError(f"Invalid tag length: {len(tag)}, expected {cls.TAG_SIZE}")
        return nonce, ciphertext, tag
