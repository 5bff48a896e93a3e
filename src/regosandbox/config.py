"""
Deployment configuration for policy checks.

A config document names which root document fields policies may read and
which rules every policy must declare:

    allowed_fields:
      - inventory
    required_rules:
      violation: 1

Documents are YAML (JSON is accepted too, being a YAML subset).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Mapping

import yaml

from regosandbox.errors import ConfigError
from regosandbox.walker import DEFAULT_ALLOWED_FIELDS


DEFAULT_REQUIRED_RULES: Mapping[str, int] = {"violation": 1}


@dataclass(frozen=True)
class PolicyConfig:
    """
    Properties:
        allowed_fields: Fields of `data` policies may reference
        required_rules: Rule name -> required arity
    """

    allowed_fields: FrozenSet[str] = DEFAULT_ALLOWED_FIELDS
    required_rules: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_REQUIRED_RULES))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> "PolicyConfig":
        """
        Build a config from a plain mapping; missing keys keep their defaults.

        Raises:
            ConfigError: On unknown keys or malformed values
        """
        if not isinstance(d, Mapping):
            raise ConfigError(f"Config must be a mapping, got {type(d).__name__}")

        unknown = set(d) - {"allowed_fields", "required_rules"}
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        allowed = d.get("allowed_fields", sorted(DEFAULT_ALLOWED_FIELDS))
        if not isinstance(allowed, list) or not all(isinstance(f, str) and f for f in allowed):
            raise ConfigError("allowed_fields must be a list of non-empty strings")

        required = d.get("required_rules", dict(DEFAULT_REQUIRED_RULES))
        if not isinstance(required, Mapping):
            raise ConfigError("required_rules must be a mapping of rule name to arity")
        for name, arity in required.items():
            if not isinstance(name, str) or not name:
                raise ConfigError(f"Invalid rule name in required_rules: {name!r}")
            if isinstance(arity, bool) or not isinstance(arity, int) or arity < 0:
                raise ConfigError(f"Arity for rule {name} must be a non-negative integer, got {arity!r}")

        return cls(allowed_fields=frozenset(allowed), required_rules=dict(required))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "allowed_fields": sorted(self.allowed_fields),
            "required_rules": dict(self.required_rules),
        }

    @classmethod
    def from_yaml(cls, text: str) -> "PolicyConfig":
        try:
            d = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid config document: {e}") from e
        return cls.from_dict(d or {})

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_dict(), sort_keys=True)


def load_config(filepath: str) -> PolicyConfig:
    """
    Load a PolicyConfig from a YAML file.

    Raises:
        FileNotFoundError: If file doesn't exist
        ConfigError: If the document is malformed
    """
    with open(filepath, "r", encoding="utf-8") as f:
        return PolicyConfig.from_yaml(f.read())


__all__ = ["PolicyConfig", "load_config", "DEFAULT_REQUIRED_RULES"]
