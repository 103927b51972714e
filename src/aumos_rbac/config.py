"""Access-control service configuration with Pydantic v2 validation.

Options may be given with their Python names (``cache_ttl``) or with the
camelCase names used by other ACL clients (``cacheTTL``).  Unknown keys are
allowed to support future options without breakage.

Example
-------
>>> AclConfig.model_validate({"cacheEnabled": False}).cache_enabled
False
>>> AclConfig().cache_ttl
300.0
"""
from __future__ import annotations

from collections.abc import Mapping

from pydantic import BaseModel, Field


class AclConfig(BaseModel):
    """Options recognised by :class:`~aumos_rbac.service.AccessControlService`.

    Attributes
    ----------
    cache_enabled:
        Cache decisions and per-user role/permission lookups.
    cache_ttl:
        Lifetime of cache entries, in seconds.
    debug_mode:
        Log every decision at INFO instead of DEBUG.  Has no other effect.
    strict_mode:
        Reserved.  Accepted and stored; no operation consults it yet.
    """

    model_config = {"extra": "allow", "populate_by_name": True, "frozen": True}

    cache_enabled: bool = Field(default=True, alias="cacheEnabled")
    cache_ttl: float = Field(default=300.0, gt=0, alias="cacheTTL")
    debug_mode: bool = Field(default=False, alias="debugMode")
    strict_mode: bool = Field(default=False, alias="strictMode")

    @classmethod
    def coerce(cls, config: AclConfig | Mapping[str, object] | None) -> AclConfig:
        """Return ``config`` as an AclConfig, validating mappings."""
        if config is None:
            return cls()
        if isinstance(config, cls):
            return config
        return cls.model_validate(dict(config))
