"""Credential Vault

Salts, hashes and compares local passwords.

Passwords are stretched with PBKDF2-HMAC-SHA512. The salt is a per-user random
value generated once at account creation (or password change) and stored next to
the derived hash; verification re-derives with the stored salt and compares.
"""

import base64
import hmac
import logging
import secrets
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DerivedCredential:
    """Result of deriving a credential

    Attributes:
        hash: Hex-encoded derived key
        salt: Text salt used for the derivation
    """

    hash: str
    salt: str


class CredentialVault:
    """Derives and verifies salted password hashes.

    Derivation is deliberately slow; it runs synchronously inside the request
    that needs it.
    """

    def __init__(
        self,
        iterations: int = 28000,
        key_length: int = 512,
        salt_bytes: int = 128,
    ):
        """Initialize the vault

        Args:
            iterations: PBKDF2 iteration count
            key_length: Derived key length in bytes (>= 64)
            salt_bytes: Bytes of randomness in newly generated salts (>= 16)
        """
        if key_length < 64:
            raise ValueError("key_length must be at least 64 bytes (512 bits)")
        if salt_bytes < 16:
            raise ValueError("salt_bytes must be at least 16")

        self.iterations = iterations
        self.key_length = key_length
        self.salt_bytes = salt_bytes

    def generate_salt(self) -> str:
        """Generate a new base64 text salt."""
        return base64.b64encode(secrets.token_bytes(self.salt_bytes)).decode("ascii")

    def derive_credential(self, password: str, salt: Optional[str] = None) -> DerivedCredential:
        """Salt and hash a password, generating a salt when none is given.

        Args:
            password: Plain text password
            salt: Existing salt to reuse (verification), or None for a new one

        Returns:
            DerivedCredential with the hex hash and the salt used
        """
        if salt is None:
            salt = self.generate_salt()

        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA512(),
            length=self.key_length,
            salt=salt.encode("utf-8"),
            iterations=self.iterations,
        )
        derived = kdf.derive(password.encode("utf-8"))

        return DerivedCredential(hash=derived.hex(), salt=salt)

    def verify(self, password: Optional[str], salt: Optional[str], expected_hash: Optional[str]) -> bool:
        """Check a plain password against a stored salt and hash.

        Never raises for bad input: a missing password, salt or hash is simply a
        non-match. The caller makes the authorization decision.
        """
        if password is None:
            return False
        if not isinstance(password, str) or not salt or not expected_hash:
            return False

        try:
            candidate = self.derive_credential(password, salt).hash
        except UnicodeEncodeError:
            # Lone surrogates cannot be encoded, so no stored hash can match
            return False
        return hmac.compare_digest(candidate, expected_hash)
