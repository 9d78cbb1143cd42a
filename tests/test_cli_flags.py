import itertools

import pytest

from kvprobe.cli import parse_bool, resolve_config
from kvprobe.config import Settings
from kvprobe.errors import ConfigError

REQ = ["-vault-url", "https://v.vault.azure.net/", "-key-name", "k1"]
FLAGS = {"test_sign": "run_sign", "test_verify": "run_verify", "test_get": "run_get"}


def enabled(cfg):
    return (cfg.run_sign, cfg.run_verify, cfg.run_get)


def test_defaults_enable_everything():
    cfg = resolve_config(REQ)
    assert enabled(cfg) == (True, True, True)
    assert cfg.algorithm == "RS256"
    assert cfg.vault_url == "https://v.vault.azure.net/"
    assert cfg.key_name == "k1"


def test_skip_all_alone_disables_everything():
    cfg = resolve_config(REQ + ["-skip-all"])
    assert enabled(cfg) == (False, False, False)
    assert not cfg.any_enabled


def _subsets():
    names = list(FLAGS)
    for r in range(len(names) + 1):
        for combo in itertools.combinations(names, r):
            for values in itertools.product([True, False], repeat=r):
                yield dict(zip(combo, values))


@pytest.mark.parametrize("explicit", list(_subsets()), ids=str)
def test_skip_all_keeps_only_explicitly_named_flags(explicit):
    argv = REQ + ["-skip-all=true"]
    for name, value in explicit.items():
        argv.append(f"-{name.replace('_', '-')}={'true' if value else 'false'}")
    cfg = resolve_config(argv)
    for name, field in FLAGS.items():
        assert getattr(cfg, field) is explicit.get(name, False)


def test_naming_a_flag_with_its_default_value_still_counts():
    # true is the default for test-get; naming it must still survive skip-all
    cfg = resolve_config(REQ + ["--test-get=true", "--skip-all"])
    assert enabled(cfg) == (False, False, True)


def test_flag_order_does_not_matter():
    a = resolve_config(REQ + ["-test-verify", "-skip-all"])
    b = resolve_config(["-skip-all", "-test-verify"] + REQ)
    assert enabled(a) == enabled(b) == (False, True, False)


def test_skip_all_false_is_plain_booleans():
    cfg = resolve_config(REQ + ["-skip-all=false", "-test-sign=false"])
    assert enabled(cfg) == (False, True, True)


def test_bool_with_separate_value():
    cfg = resolve_config(REQ + ["--test-verify", "no"])
    assert enabled(cfg) == (True, False, True)


def test_all_false_without_skip_all():
    cfg = resolve_config(REQ + ["-test-sign=false", "-test-verify=false", "-test-get=false"])
    assert not cfg.any_enabled


@pytest.mark.parametrize("missing", ["-vault-url", "-key-name"])
def test_missing_required_flag(missing):
    argv = list(REQ)
    i = argv.index(missing)
    del argv[i:i + 2]
    with pytest.raises(ConfigError) as ei:
        resolve_config(argv)
    assert missing.lstrip("-") in str(ei.value)


def test_empty_value_counts_as_missing():
    with pytest.raises(ConfigError):
        resolve_config(["-vault-url=", "-key-name", "k1"])


def test_algorithm_choice():
    cfg = resolve_config(REQ + ["-algorithm", "ES256K"])
    assert cfg.algorithm == "ES256K"


def test_unknown_algorithm_is_usage_error(capsys):
    with pytest.raises(SystemExit) as ei:
        resolve_config(REQ + ["-algorithm", "HS256"])
    assert ei.value.code == 2


def test_bad_boolean_is_usage_error(capsys):
    with pytest.raises(SystemExit) as ei:
        resolve_config(REQ + ["-test-sign=maybe"])
    assert ei.value.code == 2
    assert "invalid boolean value" in capsys.readouterr().err


@pytest.mark.parametrize("raw,value", [("1", True), ("T", True), ("yes", True), ("0", False), ("F", False), ("off", False)])
def test_parse_bool(raw, value):
    assert parse_bool(raw) is value


def test_env_settings_fill_missing_flags():
    settings = Settings(vault_url="https://env.vault.azure.net/", key_name="env-key", algorithm="PS256")
    cfg = resolve_config([], settings)
    assert cfg.vault_url == "https://env.vault.azure.net/"
    assert cfg.key_name == "env-key"
    assert cfg.algorithm == "PS256"


def test_flags_override_env_settings():
    settings = Settings(vault_url="https://env.vault.azure.net/", key_name="env-key")
    cfg = resolve_config(["--key-name", "cli-key"], settings)
    assert cfg.key_name == "cli-key"
    assert cfg.vault_url == "https://env.vault.azure.net/"


def test_env_vars_via_load_settings(monkeypatch):
    monkeypatch.setenv("AZURE_KEYVAULT_URL", "https://fallback.vault.azure.net/")
    monkeypatch.setenv("KVPROBE_KEY_NAME", "k9")
    cfg = resolve_config([])
    assert cfg.vault_url == "https://fallback.vault.azure.net/"
    assert cfg.key_name == "k9"


def test_unsupported_algorithm_from_env_is_config_error():
    settings = Settings(vault_url="https://env.vault.azure.net/", key_name="k1", algorithm="HS256")
    with pytest.raises(ConfigError) as ei:
        resolve_config([], settings)
    assert "unsupported algorithm" in str(ei.value)
