from __future__ import annotations

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from .crypto.alg_registry import SUPPORTED_ALGORITHMS

HSM_SUFFIX = "-HSM"


class ProbeKind(str, Enum):
    SIGN = "sign"
    VERIFY = "verify"
    GET = "get"


class RunConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    vault_url: str
    key_name: str
    algorithm: str = "RS256"
    run_sign: bool = True
    run_verify: bool = True
    run_get: bool = True
    output: Literal["text", "json"] = "text"
    verbose: bool = False

    @field_validator("vault_url", "key_name")
    @classmethod
    def _non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("algorithm")
    @classmethod
    def _supported_alg(cls, v: str) -> str:
        if v not in SUPPORTED_ALGORITHMS:
            raise ValueError(f"unsupported algorithm {v!r}; expected one of {', '.join(SUPPORTED_ALGORITHMS)}")
        return v

    @property
    def any_enabled(self) -> bool:
        return self.run_sign or self.run_verify or self.run_get


class KeyDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    key_type: Optional[str] = None
    key_id: Optional[str] = None
    key_ops: List[str] = Field(default_factory=list)
    enabled: Optional[bool] = None

    @computed_field  # type: ignore[misc]
    @property
    def hsm_protected(self) -> bool:
        # Case-sensitive: "RSA-HSM" and "EC-HSM" only, never "rsa-hsm".
        return self.key_type is not None and self.key_type.endswith(HSM_SUFFIX)


class ProbeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ProbeKind
    success: bool
    skipped: bool = False
    signature: Optional[bytes] = None
    placeholder_signature: bool = False
    verified: Optional[bool] = None
    key: Optional[KeyDescriptor] = None
    error: Optional[str] = None
    note: Optional[str] = None


__all__ = ["ProbeKind", "RunConfig", "KeyDescriptor", "ProbeResult", "HSM_SUFFIX"]
