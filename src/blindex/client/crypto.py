"""
Client-side key handling: token PRF and optional payload sealing.
"""
import hashlib
import hmac
import os
from typing import Union

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from blindex.shared.protocol import Payload, PayloadError


class Keyring:
    """
    Holder of the master key.

    Responsible for:
    - Deriving independent sub-keys (HKDF-SHA-256) for tokens and payloads
    - Computing deterministic term tokens (HMAC-SHA-256)
    - Sealing/opening document payloads (AES-GCM), for callers that want
      the registry to hold ciphertext

    The master key is never exported.
    """

    MIN_KEY_BYTES = 16
    SUBKEY_BYTES = 32
    NONCE_BYTES = 12
    TOKEN_INFO = b"blindex/token/v1"
    PAYLOAD_INFO = b"blindex/payload/v1"
    FINGERPRINT_LABEL = b"blindex/fingerprint"

    def __init__(self, master_key: Union[bytes, bytearray]):
        """
        Initialize keyring.

        Args:
            master_key: Opaque symmetric secret supplied by the caller
        """
        if not isinstance(master_key, (bytes, bytearray)):
            raise TypeError(
                f"master_key must be bytes, got {type(master_key).__name__}"
            )
        if len(master_key) < self.MIN_KEY_BYTES:
            raise ValueError(
                f"master_key must be at least {self.MIN_KEY_BYTES} bytes, "
                f"got {len(master_key)}"
            )

        master_key = bytes(master_key)
        self._token_key = self._derive(master_key, self.TOKEN_INFO)
        self._payload_key = self._derive(master_key, self.PAYLOAD_INFO)

    def _derive(self, master_key: bytes, info: bytes) -> bytes:
        hkdf = HKDF(
            algorithm=hashes.SHA256(),
            length=self.SUBKEY_BYTES,
            salt=None,
            info=info,
        )
        return hkdf.derive(master_key)

    def token_for(self, term: str) -> str:
        """
        Compute the token of a term.

        Args:
            term: Normalized term

        Returns:
            64-character lowercase hex HMAC-SHA-256 digest
        """
        return hmac.new(self._token_key, term.encode("utf-8"), hashlib.sha256).hexdigest()

    @property
    def fingerprint(self) -> str:
        """Short non-secret identifier of the token key, for diagnostics."""
        return hmac.new(
            self._token_key, self.FINGERPRINT_LABEL, hashlib.sha256
        ).hexdigest()[:8]

    def seal_payload(self, payload: Payload, doc_id: str) -> bytes:
        """
        Encrypt a payload for storage.

        Args:
            payload: Plaintext payload (str is UTF-8 encoded)
            doc_id: Document id, bound to the ciphertext as associated data

        Returns:
            nonce || ciphertext
        """
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        nonce = os.urandom(self.NONCE_BYTES)
        ciphertext = AESGCM(self._payload_key).encrypt(
            nonce, bytes(payload), doc_id.encode("utf-8")
        )
        return nonce + ciphertext

    def open_payload(self, sealed: bytes, doc_id: str) -> bytes:
        """
        Decrypt a payload produced by `seal_payload`.

        Raises:
            PayloadError: wrong key, wrong doc id, truncated or tampered data
        """
        if len(sealed) <= self.NONCE_BYTES:
            raise PayloadError(f"Sealed payload for {doc_id!r} is truncated")

        nonce, ciphertext = sealed[:self.NONCE_BYTES], sealed[self.NONCE_BYTES:]
        try:
            return AESGCM(self._payload_key).decrypt(
                nonce, ciphertext, doc_id.encode("utf-8")
            )
        except InvalidTag as e:
            raise PayloadError(f"Cannot open payload for {doc_id!r}") from e

    @classmethod
    def generate(cls) -> "Keyring":
        """Create a keyring with a fresh random 32-byte master key."""
        return cls(os.urandom(32))

    def __repr__(self) -> str:
        return f"Keyring(fingerprint={self.fingerprint!r})"
