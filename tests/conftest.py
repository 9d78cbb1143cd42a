from typing import List, Optional, Tuple

import pytest
from azure.core.exceptions import HttpResponseError

from kvprobe.models import KeyDescriptor

KEY_ID = "https://v.vault.azure.net/keys/k1/abc"


class StubVault:
    """In-memory VaultClient; records every call in order."""

    def __init__(
        self,
        signature: bytes = bytes(256),
        verified: bool = True,
        key: Optional[KeyDescriptor] = None,
        sign_error: Optional[Exception] = None,
        verify_error: Optional[Exception] = None,
        get_error: Optional[Exception] = None,
    ):
        self.signature = signature
        self.verified = verified
        self.key = key or KeyDescriptor(key_id=KEY_ID, key_type="RSA-HSM")
        self.sign_error = sign_error
        self.verify_error = verify_error
        self.get_error = get_error
        self.calls: List[Tuple] = []
        self.closed = False

    def sign(self, key_name, algorithm, digest):
        self.calls.append(("sign", key_name, algorithm, digest))
        if self.sign_error:
            raise self.sign_error
        return self.signature

    def verify(self, key_name, algorithm, digest, signature):
        self.calls.append(("verify", key_name, algorithm, digest, signature))
        if self.verify_error:
            raise self.verify_error
        return self.verified

    def get_key(self, key_name):
        self.calls.append(("get", key_name))
        if self.get_error:
            raise self.get_error
        return self.key

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def forbidden(op: str) -> HttpResponseError:
    return HttpResponseError(message=f"(Forbidden) The user does not have keys {op} permission")


@pytest.fixture
def stub():
    return StubVault()


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in ("KVPROBE_VAULT_URL", "AZURE_KEYVAULT_URL", "KVPROBE_KEY_NAME", "KVPROBE_ALGORITHM", "KVPROBE_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def make_stub():
    return StubVault


@pytest.fixture
def denied():
    return forbidden
