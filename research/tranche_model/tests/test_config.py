"""Tests for YAML configuration loading and validation"""
import pydantic
import pytest
import yaml

from tranche_model.src.config.loader import load_config, merge_overrides
from tranche_model.src.config.schema import Config, LedgerSettings, SeedSettings
from tranche_model.src.constants import DEFAULT_MIN_REBASE_INTERVAL


def test_defaults_load():
    config = load_config()
    assert config.ledgers.operator == "operator"
    assert config.ledgers.min_rebase_interval == DEFAULT_MIN_REBASE_INTERVAL
    assert config.ledgers.allowed_lp_tokens == ["LP"]
    assert config.seed.senior_value == 1_000_000
    assert config.seed.reserve_value == 625_000
    assert {s.name for s in config.scenarios} >= {"bull_market", "bear_market"}
    assert config.scenario("flash_crash_recovery").shock_month == 4
    with pytest.raises(KeyError):
        config.scenario("missing")


def test_load_from_yaml_file(tmp_path):
    data = load_config().to_dict()
    data["seed"]["junior_value"] = 1_000
    data["log_level"] = "DEBUG"
    path = tmp_path / "custom.yaml"
    path.write_text(yaml.safe_dump(data))

    config = load_config(str(path))
    assert config.seed.junior_value == 1_000
    assert config.log_level == "DEBUG"


def test_hash_tracks_content():
    config = load_config()
    same = Config.from_dict(config.to_dict())
    assert config.compute_hash() == same.compute_hash()

    changed = config.to_dict()
    changed["seed"]["lp_price"] = 2.0
    assert Config.from_dict(changed).compute_hash() != config.compute_hash()


def test_seed_respects_deposit_cap():
    SeedSettings(senior_value=6_250_000, junior_value=0, reserve_value=625_000)
    with pytest.raises(pydantic.ValidationError):
        SeedSettings(senior_value=6_250_001, junior_value=0, reserve_value=625_000)


def test_ledger_addresses_must_be_distinct():
    with pytest.raises(pydantic.ValidationError):
        LedgerSettings(senior_address="vault", junior_address="vault")
    with pytest.raises(pydantic.ValidationError):
        LedgerSettings(operator="reserve")
    with pytest.raises(pydantic.ValidationError):
        LedgerSettings(min_rebase_interval=0)


def test_invalid_values_are_rejected():
    data = load_config().to_dict()
    data["log_level"] = "TRACE"
    with pytest.raises(pydantic.ValidationError):
        Config.from_dict(data)

    data = load_config().to_dict()
    data["scenarios"][0]["months"] = 0
    with pytest.raises(pydantic.ValidationError):
        Config.from_dict(data)


def test_overrides_merge_into_sections():
    config = load_config(overrides={"seed": {"lp_price": 1.25}, "log_level": "ERROR"})
    assert config.seed.lp_price == 1.25
    assert config.seed.senior_value == 1_000_000
    assert config.log_level == "ERROR"

    with pytest.raises(pydantic.ValidationError):
        load_config(overrides={"seed": {"senior_value": 10_000_000}})


def test_merge_overrides_leaves_base_untouched():
    base = {"ledgers": {"operator": "operator", "whitelist_enabled": False}}
    merged = merge_overrides(base, {"ledgers": {"whitelist_enabled": True}})
    assert merged == {"ledgers": {"operator": "operator", "whitelist_enabled": True}}
    assert base["ledgers"]["whitelist_enabled"] is False
