"""Signature algorithm registry for the Key Vault probes.

Supported labels (Key Vault JWS names):
  - RS256, RS384, RS512   RSASSA-PKCS1-v1_5
  - PS256, PS384, PS512   RSASSA-PSS
  - ES256, ES256K, ES384, ES512   ECDSA (P-256, secp256k1, P-384, P-521)

The registry never checks a label against the key type; a mismatch is left for
the service to reject. Its only job beyond validating labels is sizing the
all-zero placeholder signature the Verify probe falls back to when Sign was not
run: RSA sizes assume a 2048-bit modulus, EC sizes are the raw r||s length.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

from azure.keyvault.keys.crypto import SignatureAlgorithm


@dataclass(frozen=True)
class AlgSpec:
    name: str
    family: str  # "RSA" or "EC"
    signature_size: int


_REGISTRY: Dict[str, AlgSpec] = {
    "RS256": AlgSpec("RS256", "RSA", 256),
    "RS384": AlgSpec("RS384", "RSA", 256),
    "RS512": AlgSpec("RS512", "RSA", 256),
    "PS256": AlgSpec("PS256", "RSA", 256),
    "PS384": AlgSpec("PS384", "RSA", 256),
    "PS512": AlgSpec("PS512", "RSA", 256),
    "ES256": AlgSpec("ES256", "EC", 64),
    "ES256K": AlgSpec("ES256K", "EC", 64),
    "ES384": AlgSpec("ES384", "EC", 96),
    "ES512": AlgSpec("ES512", "EC", 132),
}

SUPPORTED_ALGORITHMS: Tuple[str, ...] = tuple(_REGISTRY)


def get_alg(name: str) -> AlgSpec:
    try:
        return _REGISTRY[name]
    except KeyError:
        raise ValueError(f"Unsupported alg: {name}") from None


def placeholder_signature(name: str) -> bytes:
    return bytes(get_alg(name).signature_size)


def to_sdk(name: str) -> SignatureAlgorithm:
    """Map a label onto the azure-keyvault-keys enum (values are the JWS names)."""
    return SignatureAlgorithm(get_alg(name).name)


__all__ = ["AlgSpec", "SUPPORTED_ALGORITHMS", "get_alg", "placeholder_signature", "to_sdk"]
