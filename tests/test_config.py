"""
Tests for PolicyConfig loading.
"""

import pytest

from regosandbox.config import DEFAULT_REQUIRED_RULES, PolicyConfig, load_config
from regosandbox.errors import ConfigError


class TestPolicyConfig:

    def test_defaults(self):
        config = PolicyConfig()
        assert config.allowed_fields == frozenset({"inventory"})
        assert config.required_rules == dict(DEFAULT_REQUIRED_RULES)

    def test_from_yaml(self):
        config = PolicyConfig.from_yaml(
            "allowed_fields:\n  - inventory\n  - external\nrequired_rules:\n  violation: 1\n  audit: 0\n"
        )
        assert config.allowed_fields == frozenset({"inventory", "external"})
        assert config.required_rules == {"violation": 1, "audit": 0}

    def test_missing_keys_use_defaults(self):
        config = PolicyConfig.from_yaml("required_rules:\n  deny: 2\n")
        assert config.allowed_fields == frozenset({"inventory"})
        assert config.required_rules == {"deny": 2}

    def test_empty_document(self):
        assert PolicyConfig.from_yaml("") == PolicyConfig()

    def test_json_is_accepted(self):
        config = PolicyConfig.from_yaml('{"allowed_fields": ["a"]}')
        assert config.allowed_fields == frozenset({"a"})

    def test_yaml_round_trip(self):
        config = PolicyConfig(allowed_fields=frozenset({"b", "a"}), required_rules={"v": 1})
        assert PolicyConfig.from_yaml(config.to_yaml()) == config

    @pytest.mark.parametrize("text", [
        "allowed_fields: inventory\n",
        "allowed_fields:\n  - ''\n",
        "required_rules:\n  violation: -1\n",
        "required_rules:\n  violation: one\n",
        "required_rules:\n  violation: true\n",
        "required_rules: [violation]\n",
        "unknown: 1\n",
        "- a\n- b\n",
        "allowed_fields: [\n",
    ])
    def test_invalid(self, text):
        with pytest.raises(ConfigError):
            PolicyConfig.from_yaml(text)


def test_load_config(tmp_path):
    path = tmp_path / "policy.yaml"
    path.write_text("allowed_fields:\n  - inventory\nrequired_rules:\n  violation: 1\n")
    config = load_config(str(path))
    assert config.required_rules == {"violation": 1}


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "absent.yaml"))
