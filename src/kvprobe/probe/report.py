from __future__ import annotations

import json
import sys
from typing import Any, Dict, List, Optional, Protocol, TextIO

from ..crypto.digest import b64
from ..models import ProbeKind, ProbeResult, RunConfig

_STEPS = {
    ProbeKind.SIGN: (1, "SIGN", "SIGN permission"),
    ProbeKind.VERIFY: (2, "VERIFY", "VERIFY permission"),
    ProbeKind.GET: (3, "GET", "GET permission (key info retrieval)"),
}

NO_TESTS = "No tests selected."
COMPLETED = "Permission test completed."


class Reporter(Protocol):
    def start(self, config: RunConfig) -> None: ...
    def begin(self, kind: ProbeKind) -> None: ...
    def report(self, result: ProbeResult) -> None: ...
    def no_tests(self) -> None: ...
    def finish(self) -> None: ...


class ConsoleReporter:
    """Human-readable report, one block per probe, written as each probe completes."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self._first = True

    def _line(self, text: str = "") -> None:
        print(text, file=self.stream, flush=True)

    def start(self, config: RunConfig) -> None:
        self._line(f"Testing Azure Key Vault permissions for key: {config.key_name}")
        self._line(f"Vault URL: {config.vault_url}")
        self._line(f"Algorithm: {config.algorithm}")
        self._line()

    def begin(self, kind: ProbeKind) -> None:
        n, _, title = _STEPS[kind]
        if not self._first:
            self._line()
        self._first = False
        self._line(f"{n}. Testing {title}...")

    def report(self, result: ProbeResult) -> None:
        _, name, _ = _STEPS[result.kind]
        if result.skipped:
            self._line(f"   ⚠️  Skipping {name} test ({result.note})")
            return
        if result.success:
            self._line(f"   ✅ {name} successful")
        else:
            self._line(f"   ❌ {name} failed: {result.error}")

        if result.kind is ProbeKind.SIGN and result.signature is not None:
            self._line(f"   Signature: {b64(result.signature)}")
        if result.placeholder_signature:
            self._line("   Note: SIGN was not run; verified a zero-filled placeholder signature")
            if result.verified is False:
                self._line("   The VERIFY call itself was permitted")
        if result.key is not None:
            key = result.key
            if key.key_id:
                self._line(f"   Key ID: {key.key_id}")
            if key.key_type:
                self._line(f"   Key Type: {key.key_type}")
            self._line(f"   HSM Protected: {str(key.hsm_protected).lower()}")
            if key.key_ops:
                self._line(f"   Key Operations: {', '.join(key.key_ops)}")

    def no_tests(self) -> None:
        self._line(NO_TESTS)

    def finish(self) -> None:
        self._line()
        self._line(COMPLETED)


def result_to_dict(result: ProbeResult) -> Dict[str, Any]:
    doc: Dict[str, Any] = {
        "operation": result.kind.value,
        "success": result.success,
        "skipped": result.skipped,
    }
    if result.signature is not None:
        doc["signature_b64"] = b64(result.signature)
    if result.kind is ProbeKind.VERIFY:
        doc["verified"] = result.verified
        doc["placeholder_signature"] = result.placeholder_signature
    if result.key is not None:
        doc["key"] = result.key.model_dump()
    if result.error:
        doc["error"] = result.error
    if result.note:
        doc["note"] = result.note
    return doc


class JsonReporter:
    """Collects results and prints a single JSON document when the run finishes."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self.doc: Dict[str, Any] = {}
        self.results: List[Dict[str, Any]] = []

    def start(self, config: RunConfig) -> None:
        self.doc = {
            "vault_url": config.vault_url,
            "key_name": config.key_name,
            "algorithm": config.algorithm,
        }

    def begin(self, kind: ProbeKind) -> None:
        pass

    def report(self, result: ProbeResult) -> None:
        self.results.append(result_to_dict(result))

    def no_tests(self) -> None:
        self.doc["note"] = NO_TESTS

    def finish(self) -> None:
        self.doc["results"] = self.results
        self.doc["completed"] = True
        print(json.dumps(self.doc, indent=2), file=self.stream, flush=True)


def make_reporter(output: str, stream: Optional[TextIO] = None) -> Reporter:
    if output == "json":
        return JsonReporter(stream)
    return ConsoleReporter(stream)


__all__ = ["Reporter", "ConsoleReporter", "JsonReporter", "make_reporter", "result_to_dict", "NO_TESTS", "COMPLETED"]
