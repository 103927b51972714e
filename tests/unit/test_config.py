"""Tests for AclConfig."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from aumos_rbac.config import AclConfig


class TestAclConfigDefaults:
    def test_defaults(self) -> None:
        config = AclConfig()
        assert config.cache_enabled is True
        assert config.cache_ttl == 300
        assert config.debug_mode is False
        assert config.strict_mode is False


class TestAclConfigValidation:
    def test_python_names_accepted(self) -> None:
        config = AclConfig.model_validate({"cache_enabled": False, "cache_ttl": 60})
        assert config.cache_enabled is False
        assert config.cache_ttl == 60

    def test_camel_case_names_accepted(self) -> None:
        config = AclConfig.model_validate(
            {"cacheEnabled": False, "cacheTTL": 30, "debugMode": True, "strictMode": True}
        )
        assert config.cache_enabled is False
        assert config.cache_ttl == 30
        assert config.debug_mode is True
        assert config.strict_mode is True

    def test_non_positive_ttl_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AclConfig.model_validate({"cache_ttl": 0})

    def test_unknown_keys_allowed(self) -> None:
        config = AclConfig.model_validate({"future_option": 1})
        assert config.cache_enabled is True

    def test_frozen(self) -> None:
        config = AclConfig()
        with pytest.raises(ValidationError):
            config.cache_enabled = False  # type: ignore[misc]


class TestAclConfigCoerce:
    def test_none_gives_defaults(self) -> None:
        assert AclConfig.coerce(None) == AclConfig()

    def test_instance_passthrough(self) -> None:
        config = AclConfig.model_validate({"cache_ttl": 10})
        assert AclConfig.coerce(config) is config

    def test_mapping_validated(self) -> None:
        assert AclConfig.coerce({"cacheEnabled": False}).cache_enabled is False
