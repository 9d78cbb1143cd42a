"""Sequential permission probes against a key vault.

Sign runs first and its signature, when it produced one, is handed to Verify
unchanged. When Sign was not requested at all, Verify still runs with an
all-zero placeholder signature so the verify permission is exercised: a
permitted call answers "not verified", a forbidden one raises. When Sign was
requested but failed, Verify is skipped.

A failing probe never stops the next one. ``KeyboardInterrupt`` is not caught.
"""
from __future__ import annotations

from typing import List, Optional

from azure.core.exceptions import AzureError

from ..crypto.alg_registry import placeholder_signature
from ..crypto.digest import probe_digest
from ..models import ProbeKind, ProbeResult, RunConfig
from ..utils.logging import get_logger
from ..vault.client import VaultClient
from .report import Reporter

NO_SIGNATURE = "no signature available"
VERIFY_FAILED = "signature verification failed"

log = get_logger()


def describe_error(e: Exception) -> str:
    if isinstance(e, AzureError) and e.message:
        return e.message
    return str(e) or type(e).__name__


class ProbeRunner:
    def __init__(self, client: VaultClient, reporter: Reporter, digest: Optional[bytes] = None):
        self.client = client
        self.reporter = reporter
        self.digest = digest if digest is not None else probe_digest()

    def run(self, config: RunConfig) -> List[ProbeResult]:
        results: List[ProbeResult] = []
        self.reporter.start(config)
        if not config.any_enabled:
            self.reporter.no_tests()
            self.reporter.finish()
            return results

        signature: Optional[bytes] = None
        if config.run_sign:
            res = self._run(ProbeKind.SIGN, lambda: self.sign(config))
            signature = res.signature
            results.append(res)
        if config.run_verify:
            results.append(self._run(ProbeKind.VERIFY, lambda: self.verify(config, signature)))
        if config.run_get:
            results.append(self._run(ProbeKind.GET, lambda: self.get(config)))

        self.reporter.finish()
        return results

    def _run(self, kind: ProbeKind, probe) -> ProbeResult:
        self.reporter.begin(kind)
        res = probe()
        log.debug("%s probe: success=%s skipped=%s", kind.value, res.success, res.skipped)
        self.reporter.report(res)
        return res

    def sign(self, config: RunConfig) -> ProbeResult:
        try:
            sig = self.client.sign(config.key_name, config.algorithm, self.digest)
        except Exception as e:
            log.warning("sign failed for %s: %s", config.key_name, e)
            log.debug("sign failure detail", exc_info=True)
            return ProbeResult(kind=ProbeKind.SIGN, success=False, error=f"sign operation failed: {describe_error(e)}")
        return ProbeResult(kind=ProbeKind.SIGN, success=True, signature=sig)

    def verify(self, config: RunConfig, signature: Optional[bytes]) -> ProbeResult:
        placeholder = False
        if signature is None:
            if config.run_sign:
                return ProbeResult(kind=ProbeKind.VERIFY, success=False, skipped=True, note=NO_SIGNATURE)
            signature = placeholder_signature(config.algorithm)
            placeholder = True
        try:
            ok = self.client.verify(config.key_name, config.algorithm, self.digest, signature)
        except Exception as e:
            log.warning("verify failed for %s: %s", config.key_name, e)
            log.debug("verify failure detail", exc_info=True)
            return ProbeResult(
                kind=ProbeKind.VERIFY,
                success=False,
                placeholder_signature=placeholder,
                error=f"verify operation failed: {describe_error(e)}",
            )
        return ProbeResult(
            kind=ProbeKind.VERIFY,
            success=ok,
            verified=ok,
            placeholder_signature=placeholder,
            error=None if ok else VERIFY_FAILED,
        )

    def get(self, config: RunConfig) -> ProbeResult:
        try:
            key = self.client.get_key(config.key_name)
        except Exception as e:
            log.warning("get key failed for %s: %s", config.key_name, e)
            log.debug("get failure detail", exc_info=True)
            return ProbeResult(kind=ProbeKind.GET, success=False, error=f"get key operation failed: {describe_error(e)}")
        return ProbeResult(kind=ProbeKind.GET, success=True, key=key)


__all__ = ["ProbeRunner", "describe_error", "NO_SIGNATURE", "VERIFY_FAILED"]
