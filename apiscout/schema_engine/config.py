# -*- coding: utf-8 -*-
"""
Schema Engine Configuration - apiscout schema interpretation engine

Centralized configuration for the schema engine covering:
- Example generation defaults (recursion depth, placeholder text)
- Property name sanitization filler
- Recommendation cues that turn absent optional fields into warnings
- Format checking toggle and error cap
- Schema nesting limit applied while parsing
- Logging level

All settings can be overridden via environment variables with the
``APISCOUT_SCHEMA_`` prefix (e.g. ``APISCOUT_SCHEMA_DEFAULT_MAX_DEPTH``).

Example:
    >>> from apiscout.schema_engine.config import get_config
    >>> cfg = get_config()
    >>> print(cfg.default_max_depth, cfg.string_placeholder)
"""

from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass
from typing import Any, List, Optional

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Environment variable prefix
# ---------------------------------------------------------------------------

_ENV_PREFIX = "APISCOUT_SCHEMA_"


# ---------------------------------------------------------------------------
# SchemaEngineConfig
# ---------------------------------------------------------------------------


@dataclass
class SchemaEngineConfig:
    """Complete configuration for the apiscout schema engine.

    All attributes can be overridden via environment variables using the
    ``APISCOUT_SCHEMA_`` prefix.

    Attributes:
        default_max_depth: Nesting level at which example generation stops
            descending into objects and arrays.
        string_placeholder: Generic string emitted when no pattern or
            format applies.
        name_filler: Character replacing disallowed characters in
            generated property names.
        recommendation_cues: Comma-separated words that mark an optional
            property's description as a recommendation.
        enable_format_checks: Whether string ``format`` values are checked
            by compiled validators.
        max_errors: Maximum number of errors kept in one report.
        max_schema_nesting: Maximum number of nested mappings and lists a
            raw schema may contain before parsing rejects it. Example
            generation truncates deeper containers instead.
        log_level: Logging level for the schema engine.
    """

    # -- Generation ----------------------------------------------------------
    default_max_depth: int = 10
    string_placeholder: str = "string"
    name_filler: str = "_"

    # -- Diagnostics ---------------------------------------------------------
    recommendation_cues: str = "recommended,should"
    enable_format_checks: bool = True
    max_errors: int = 100
    max_schema_nesting: int = 64

    # -- Logging -------------------------------------------------------------
    log_level: str = "INFO"

    @property
    def cue_list(self) -> List[str]:
        """Recommendation cues as a lower-cased list."""
        return [
            cue.strip().lower()
            for cue in self.recommendation_cues.split(",")
            if cue.strip()
        ]

    # ------------------------------------------------------------------
    # Factory helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls) -> SchemaEngineConfig:
        """Build a SchemaEngineConfig from environment variables.

        Every field can be overridden via ``APISCOUT_SCHEMA_<FIELD_UPPER>``.
        Boolean values accept ``true/1/yes`` (case-insensitive).
        Integer values are parsed via ``int()``.

        Returns:
            Populated SchemaEngineConfig instance.
        """
        prefix = _ENV_PREFIX

        def _env(name: str, default: Any = None) -> Optional[str]:
            return os.environ.get(f"{prefix}{name}", default)

        def _bool(name: str, default: bool) -> bool:
            val = _env(name)
            if val is None:
                return default
            return val.lower() in ("true", "1", "yes")

        def _int(name: str, default: int) -> int:
            val = _env(name)
            if val is None:
                return default
            try:
                return int(val)
            except ValueError:
                logger.warning(
                    "Invalid integer for %s%s=%s, using default %d",
                    prefix, name, val, default,
                )
                return default

        def _str(name: str, default: str) -> str:
            val = _env(name)
            if val is None:
                return default
            return val

        config = cls(
            default_max_depth=_int(
                "DEFAULT_MAX_DEPTH", cls.default_max_depth,
            ),
            string_placeholder=_str(
                "STRING_PLACEHOLDER", cls.string_placeholder,
            ),
            name_filler=_str("NAME_FILLER", cls.name_filler),
            recommendation_cues=_str(
                "RECOMMENDATION_CUES", cls.recommendation_cues,
            ),
            enable_format_checks=_bool(
                "ENABLE_FORMAT_CHECKS", cls.enable_format_checks,
            ),
            max_errors=_int("MAX_ERRORS", cls.max_errors),
            max_schema_nesting=_int(
                "MAX_SCHEMA_NESTING", cls.max_schema_nesting,
            ),
            log_level=_str("LOG_LEVEL", cls.log_level),
        )

        logger.info(
            "SchemaEngineConfig loaded: max_depth=%d, placeholder=%r, "
            "filler=%r, cues=%s, format_checks=%s, max_errors=%d, "
            "max_nesting=%d",
            config.default_max_depth,
            config.string_placeholder,
            config.name_filler,
            config.recommendation_cues,
            config.enable_format_checks,
            config.max_errors,
            config.max_schema_nesting,
        )
        return config


# ---------------------------------------------------------------------------
# Thread-safe singleton accessor
# ---------------------------------------------------------------------------

_config_instance: Optional[SchemaEngineConfig] = None
_config_lock = threading.Lock()


def get_config() -> SchemaEngineConfig:
    """Return the singleton SchemaEngineConfig, creating from env if needed.

    Returns:
        SchemaEngineConfig singleton instance.
    """
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _config_instance = SchemaEngineConfig.from_env()
    return _config_instance


def set_config(config: SchemaEngineConfig) -> None:
    """Replace the singleton SchemaEngineConfig (useful for testing).

    Args:
        config: New configuration to install.
    """
    global _config_instance
    with _config_lock:
        _config_instance = config
    logger.info("SchemaEngineConfig replaced programmatically")


def reset_config() -> None:
    """Reset the singleton (primarily for test teardown)."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = [
    "SchemaEngineConfig",
    "get_config",
    "set_config",
    "reset_config",
]
