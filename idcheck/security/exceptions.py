class CipherError(Exception):
    """Base exception for all encryption-at-rest errors."""


class KeyConfigurationError(CipherError):
    """Raised when the configured key is missing or has the wrong size."""


class FormatError(CipherError):
    """Raised when an envelope is not a well-formed nonce:ciphertext:tag triple."""


class IntegrityError(CipherError):
    """Raised when an envelope fails authentication (tampered or wrong key)."""
