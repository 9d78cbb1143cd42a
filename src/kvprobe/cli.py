from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config import Settings, load_settings
from .crypto.alg_registry import SUPPORTED_ALGORITHMS
from .errors import AuthenticationError, ConfigError
from .models import RunConfig
from .probe.report import make_reporter
from .probe.runner import ProbeRunner
from .utils.logging import get_logger, set_level, set_verbose
from .vault.client import create_client

TEST_FLAGS = ("test_sign", "test_verify", "test_get")

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_INTERRUPTED = 130

_TRUE = {"1", "t", "true", "yes", "y", "on"}
_FALSE = {"0", "f", "false", "no", "n", "off"}

log = get_logger()


def parse_bool(value: str) -> bool:
    v = value.strip().lower()
    if v in _TRUE:
        return True
    if v in _FALSE:
        return False
    raise argparse.ArgumentTypeError(f"invalid boolean value: {value!r}")


class ExplicitBool(argparse.Action):
    """Boolean flag that also records that it was named on the command line."""

    def __init__(self, option_strings, dest, default=False, help=None):
        super().__init__(
            option_strings, dest, nargs="?", const=True, default=default, type=parse_bool, metavar="BOOL", help=help
        )

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, values)
        seen = set(getattr(namespace, "explicit_flags", ()) or ())
        seen.add(self.dest)
        namespace.explicit_flags = frozenset(seen)


def build_parser(settings: Optional[Settings] = None) -> argparse.ArgumentParser:
    settings = settings or load_settings()
    p = argparse.ArgumentParser(
        prog="kvprobe",
        description="Test sign, verify and get permissions on an Azure Key Vault key",
        allow_abbrev=False,
    )
    p.add_argument(
        "-vault-url", "--vault-url", dest="vault_url", default=settings.vault_url,
        help="Azure Key Vault URL (e.g., https://myvault.vault.azure.net/)",
    )
    p.add_argument("-key-name", "--key-name", dest="key_name", default=settings.key_name, help="Name of the key to test")
    p.add_argument(
        "-algorithm", "--algorithm", dest="algorithm", default=settings.algorithm,
        choices=SUPPORTED_ALGORITHMS, help="Signature algorithm (default: %(default)s)",
    )
    p.add_argument("-test-sign", "--test-sign", dest="test_sign", action=ExplicitBool, default=True, help="Test SIGN permission")
    p.add_argument(
        "-test-verify", "--test-verify", dest="test_verify", action=ExplicitBool, default=True, help="Test VERIFY permission"
    )
    p.add_argument("-test-get", "--test-get", dest="test_get", action=ExplicitBool, default=True, help="Test GET permission")
    p.add_argument(
        "-skip-all", "--skip-all", dest="skip_all", action=ExplicitBool, default=False,
        help="Disable every test not named explicitly on the command line",
    )
    p.add_argument("-output", "--output", dest="output", choices=("text", "json"), default="text", help="Report format")
    p.add_argument("-v", "-verbose", "--verbose", dest="verbose", action=ExplicitBool, default=False, help="Debug logging")
    p.set_defaults(explicit_flags=frozenset())
    return p


def resolve_tests(args: argparse.Namespace) -> dict:
    """Apply skip-all: unnamed test flags go to False, named ones keep their value."""
    enabled = {name: getattr(args, name) for name in TEST_FLAGS}
    if args.skip_all:
        enabled = {name: (getattr(args, name) if name in args.explicit_flags else False) for name in TEST_FLAGS}
    return enabled


def resolve_config(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> RunConfig:
    parser = build_parser(settings)
    args = parser.parse_args(argv)
    if not args.vault_url or not args.key_name:
        missing = [f for f, v in (("vault-url", args.vault_url), ("key-name", args.key_name)) if not v]
        raise ConfigError(f"missing required flag(s): {', '.join(missing)}")
    tests = resolve_tests(args)
    try:
        return RunConfig(
            vault_url=args.vault_url,
            key_name=args.key_name,
            algorithm=args.algorithm,
            run_sign=tests["test_sign"],
            run_verify=tests["test_verify"],
            run_get=tests["test_get"],
            output=args.output,
            verbose=args.verbose,
        )
    except ValidationError as e:
        # defaults taken from the environment bypass argparse choices
        raise ConfigError("; ".join(err["msg"] for err in e.errors())) from e


def _usage_error(settings: Settings, message: str) -> int:
    build_parser(settings).print_usage(sys.stderr)
    print(f"kvprobe: error: {message}", file=sys.stderr)
    return EXIT_FATAL


def main(argv: Optional[List[str]] = None, client_factory=None) -> int:
    try:
        settings = load_settings()
    except ValidationError as e:
        # environment values are validated before any flag is parsed
        return _usage_error(Settings(), "; ".join(f"{'.'.join(map(str, d['loc']))}: {d['msg']}" for d in e.errors()))
    try:
        config = resolve_config(argv, settings)
    except ConfigError as e:
        return _usage_error(settings, str(e))
    set_level(log, settings.log_level)
    if config.verbose:
        set_verbose(log)

    reporter = make_reporter(config.output)
    if not config.any_enabled:
        ProbeRunner(client=None, reporter=reporter).run(config)  # type: ignore[arg-type]
        return EXIT_OK

    client_factory = client_factory or create_client
    try:
        try:
            client = client_factory(config.vault_url, settings=settings)
        except AuthenticationError as e:
            log.error("%s", e)
            return EXIT_FATAL
        except ValueError as e:
            log.error("Failed to create Key Vault client: %s", e)
            return EXIT_FATAL
        with client:
            ProbeRunner(client, reporter).run(config)
    except KeyboardInterrupt:
        log.error("interrupted")
        return EXIT_INTERRUPTED
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
