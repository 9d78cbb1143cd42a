from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, runtime_checkable
from urllib.parse import quote

from azure.core.credentials import TokenCredential
from azure.core.rest import HttpRequest
from azure.keyvault.keys import KeyClient
from azure.keyvault.keys.crypto import CryptographyClient

from ..config import Settings
from ..crypto.alg_registry import get_alg, to_sdk
from ..crypto.digest import b64url
from ..errors import AuthenticationError
from ..models import KeyDescriptor
from ..utils.logging import get_logger
from .credentials import build_credential, ensure_token

API_VERSION = "7.4"

log = get_logger()


def _label(value) -> str:
    # SDK enums (KeyType, KeyOperation) are str enums; keep the wire value
    return str(getattr(value, "value", value))


@runtime_checkable
class VaultClient(Protocol):
    def sign(self, key_name: str, algorithm: str, digest: bytes) -> bytes: ...
    def verify(self, key_name: str, algorithm: str, digest: bytes, signature: bytes) -> bool: ...
    def get_key(self, key_name: str) -> KeyDescriptor: ...


@dataclass
class AzureKeyVaultClient:
    """VaultClient backed by azure-keyvault-keys.

    Sign goes through ``CryptographyClient``. Verify is sent to the service
    directly: ``CryptographyClient.verify`` switches to local verification once
    it has fetched the public key, and then the verify permission is never
    checked.
    """

    vault_url: str
    credential: TokenCredential
    owns_credential: bool = False
    _keys: KeyClient = field(init=False, repr=False)
    _crypto: Dict[str, CryptographyClient] = field(init=False, repr=False, default_factory=dict)

    def __post_init__(self):
        self.vault_url = self.vault_url.rstrip("/")
        self._keys = KeyClient(vault_url=self.vault_url, credential=self.credential)

    def _crypto_client(self, key_name: str) -> CryptographyClient:
        if key_name not in self._crypto:
            self._crypto[key_name] = self._keys.get_cryptography_client(key_name)
        return self._crypto[key_name]

    def sign(self, key_name: str, algorithm: str, digest: bytes) -> bytes:
        result = self._crypto_client(key_name).sign(to_sdk(algorithm), digest)
        return result.signature

    def verify(self, key_name: str, algorithm: str, digest: bytes, signature: bytes) -> bool:
        # empty key-version segment selects the latest version, as the SDK does
        url = f"{self.vault_url}/keys/{quote(key_name, safe='')}//verify"
        request = HttpRequest(
            "POST",
            url,
            params={"api-version": API_VERSION},
            json={"alg": get_alg(algorithm).name, "digest": b64url(digest), "value": b64url(signature)},
        )
        response = self._keys.send_request(request)
        response.raise_for_status()
        return bool(response.json().get("value"))

    def get_key(self, key_name: str) -> KeyDescriptor:
        key = self._keys.get_key(key_name)
        return KeyDescriptor(
            key_id=key.id,
            key_type=_label(key.key_type) if key.key_type is not None else None,
            key_ops=[_label(op) for op in (key.key_operations or [])],
            enabled=key.properties.enabled,
        )

    def close(self) -> None:
        for c in self._crypto.values():
            c.close()
        self._crypto.clear()
        self._keys.close()
        if self.owns_credential:
            close = getattr(self.credential, "close", None)
            if close is not None:
                close()

    def __enter__(self) -> "AzureKeyVaultClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def create_client(
    vault_url: str,
    credential: Optional[TokenCredential] = None,
    settings: Optional[Settings] = None,
) -> AzureKeyVaultClient:
    """Authenticated client for ``vault_url``; raises AuthenticationError up front."""
    owned = credential is None
    if credential is None:
        credential = build_credential(settings)
    try:
        ensure_token(credential, vault_url)
    except AuthenticationError:
        if owned:
            credential.close()
        raise
    log.info("connected to %s", vault_url)
    return AzureKeyVaultClient(vault_url=vault_url, credential=credential, owns_credential=owned)


__all__ = ["VaultClient", "AzureKeyVaultClient", "create_client", "API_VERSION"]
