import base64
import hashlib

from ..config import TEST_MESSAGE


def sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


def probe_digest(message: bytes = TEST_MESSAGE) -> bytes:
    """32-byte digest sent to the vault in place of the plaintext."""
    return sha256(message)


def b64(data: bytes) -> str:
    return base64.b64encode(data).decode()


def b64url(data: bytes) -> str:
    # Key Vault REST bodies use unpadded base64url
    return base64.urlsafe_b64encode(data).decode().rstrip("=")
