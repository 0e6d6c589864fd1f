# -*- coding: utf-8 -*-
"""
Impact Verification Configuration

Centralized configuration for the impact-claim verification engine
covering:
- Admin identity for type and data-source registration
- Logical clock genesis value
- Provenance recording toggle
- External-source resubmission policy
- Optional threshold upper bound

All settings can be overridden via environment variables with the
``IL_VERIFICATION_`` prefix (e.g. ``IL_VERIFICATION_ADMIN_IDENTITY``).

Example:
    >>> from impactledger.verification.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.admin_identity, cfg.allow_external_resubmission)

Author: ImpactLedger Platform Team
Date: October 2026
Status: Production Ready
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, Optional

logger = logging.getLogger(__name__)

_ENV_PREFIX = "IL_VERIFICATION_"


# ---------------------------------------------------------------------------
# ImpactVerificationConfig
# ---------------------------------------------------------------------------


@dataclass
class ImpactVerificationConfig:
    """Complete configuration for the impact verification engine.

    Attributes:
        service_name: Name reported by health checks.
        admin_identity: Identity allowed to register impact types and
            data sources.
        genesis_time: Initial value of the logical clock.
        enable_provenance: Whether to record the SHA-256 audit chain.
        allow_external_resubmission: Whether a data source may attest the
            same claim again. A resubmission overwrites the stored
            attestation and counts toward the threshold again.
        max_required_verifications: Optional upper bound for a claim's
            threshold. None leaves thresholds unbounded.
    """

    service_name: str = "impact-verification"

    # -- Access --------------------------------------------------------------
    admin_identity: str = "admin"

    # -- Clock ---------------------------------------------------------------
    genesis_time: int = 0

    # -- Audit ---------------------------------------------------------------
    enable_provenance: bool = True

    # -- Consensus policy ----------------------------------------------------
    allow_external_resubmission: bool = True
    max_required_verifications: Optional[int] = None

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> ImpactVerificationConfig:
        """Build an ImpactVerificationConfig from environment variables.

        Every field can be overridden via ``IL_VERIFICATION_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Integer values are parsed via ``int()``; a value that does not
        parse, or falls below the field's minimum, logs a warning and keeps
        the default.

        Returns:
            Populated ImpactVerificationConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None or not val.strip():
                return default
            return val.strip()

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(
            name: str,
            default: Optional[int],
            minimum: Optional[int] = None,
        ) -> Optional[int]:
            val = _env(name)
            if val is None or not val.strip():
                return default
            try:
                parsed = int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %s",
                    prefix, name, val, default,
                )
                return default
            if minimum is not None and parsed < minimum:
                logger.warning(
                    "%s%s=%d is below the minimum %d, using default %s",
                    prefix, name, parsed, minimum, default,
                )
                return default
            return parsed

        config = cls(
            service_name=_str("SERVICE_NAME", cls.service_name),
            admin_identity=_str("ADMIN_IDENTITY", cls.admin_identity),
            genesis_time=_int("GENESIS_TIME", cls.genesis_time, minimum=0),
            enable_provenance=_bool(
                "ENABLE_PROVENANCE", cls.enable_provenance,
            ),
            allow_external_resubmission=_bool(
                "ALLOW_EXTERNAL_RESUBMISSION",
                cls.allow_external_resubmission,
            ),
            max_required_verifications=_int(
                "MAX_REQUIRED_VERIFICATIONS",
                cls.max_required_verifications,
                minimum=1,
            ),
        )

        logger.info(
            "ImpactVerificationConfig loaded: admin=%s, genesis=%d, "
            "provenance=%s, external_resubmission=%s, max_required=%s",
            config.admin_identity,
            config.genesis_time,
            config.enable_provenance,
            config.allow_external_resubmission,
            config.max_required_verifications,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[ImpactVerificationConfig] = None
_config_lock = threading.Lock()


def get_config() -> ImpactVerificationConfig:
    """Return the singleton config, creating it from env if needed."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = ImpactVerificationConfig.from_env()
    return _config_instance


def set_config(config: ImpactVerificationConfig) -> None:
    """Replace the singleton config (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("ImpactVerificationConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "ImpactVerificationConfig",
    "get_config",
    "set_config",
    "reset_config",
]
