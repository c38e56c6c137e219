"""
Configuration for TalentRank.
"""

import copy
import os
import yaml
from pathlib import Path
from typing import Dict, Any, Mapping, Optional, cast
from urllib.parse import urlparse

from talentrank.core.exceptions import ConfigurationError
from talentrank.core.logging import logger


COUNT_POLICIES = ("default", "clamp")
MISSING_EMBEDDING_POLICIES = ("exclude", "lexical_only")


class ConfigValidator:
    """
    Configuration validator.

    Validations:
    1. Positive sizes, windows and attempt counts
    2. Ranking weights and count bounds
    3. Known policy names
    4. Provider URL must be https (plain http only for localhost)
    """

    def validate_config(self, config: Dict[str, Any]) -> None:
        """Validate the merged configuration, raising ConfigurationError on the first problem."""
        provider = config.get("provider", {})
        base_url = str(provider.get("base_url", ""))
        parsed = urlparse(base_url)
        if parsed.scheme not in ("https", "http") or not parsed.netloc:
            raise ConfigurationError(f"Invalid provider base_url: {base_url!r}")
        if parsed.scheme == "http" and parsed.hostname not in ("localhost", "127.0.0.1"):
            logger.error("Refusing plain http provider", base_url=base_url)
            raise ConfigurationError(f"Provider base_url must use https: {base_url}")

        for key in ("embedding_dimensions", "max_input_chars", "request_timeout"):
            self._require_positive(provider.get(key), f"provider.{key}")
        self._require_non_negative(
            provider.get("health_freshness_seconds"), "provider.health_freshness_seconds"
        )

        for name, section in config.get("cache", {}).items():
            for key in ("ttl_seconds", "max_entries", "max_size_bytes"):
                self._require_positive(section.get(key), f"cache.{name}.{key}")

        for name, section in config.get("rate_limits", {}).items():
            self._require_positive(section.get("max_requests"), f"rate_limits.{name}.max_requests")
            self._require_positive(
                section.get("window_seconds"), f"rate_limits.{name}.window_seconds"
            )

        for name, section in config.get("retry", {}).items():
            self._require_positive(section.get("max_attempts"), f"retry.{name}.max_attempts")
            self._require_non_negative(section.get("base_delay"), f"retry.{name}.base_delay")
            self._require_non_negative(section.get("max_delay"), f"retry.{name}.max_delay")
            multiplier = section.get("backoff_multiplier")
            if not isinstance(multiplier, (int, float)) or multiplier < 1:
                raise ConfigurationError(
                    f"Invalid retry.{name}.backoff_multiplier: {multiplier!r} (must be >= 1)"
                )

        matching = config.get("matching", {})
        vector_weight = matching.get("vector_weight")
        lexical_weight = matching.get("lexical_weight")
        for key, weight in (("vector_weight", vector_weight), ("lexical_weight", lexical_weight)):
            if not isinstance(weight, (int, float)) or not 0 <= weight <= 1:
                raise ConfigurationError(f"Invalid matching.{key}: {weight!r} (must be in [0, 1])")
        if vector_weight + lexical_weight <= 0:
            raise ConfigurationError("matching weights cannot both be zero")

        min_count = matching.get("min_count")
        max_count = matching.get("max_count")
        self._require_positive(min_count, "matching.min_count")
        self._require_positive(max_count, "matching.max_count")
        if min_count > max_count:
            raise ConfigurationError(
                f"matching.min_count ({min_count}) is greater than matching.max_count ({max_count})"
            )
        default_count = matching.get("default_count")
        if not isinstance(default_count, int) or not min_count <= default_count <= max_count:
            raise ConfigurationError(f"Invalid matching.default_count: {default_count!r}")

        if matching.get("count_policy") not in COUNT_POLICIES:
            raise ConfigurationError(
                f"Unknown matching.count_policy {matching.get('count_policy')!r}, "
                f"expected one of {COUNT_POLICIES}"
            )
        if matching.get("missing_embedding_policy") not in MISSING_EMBEDDING_POLICIES:
            raise ConfigurationError(
                f"Unknown matching.missing_embedding_policy "
                f"{matching.get('missing_embedding_policy')!r}, "
                f"expected one of {MISSING_EMBEDDING_POLICIES}"
            )

    def _require_positive(self, value: Any, name: str) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            logger.error("Invalid configuration value", setting=name, value=value)
            raise ConfigurationError(f"Invalid {name}: {value!r} (must be > 0)")

    def _require_non_negative(self, value: Any, name: str) -> None:
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            logger.error("Invalid configuration value", setting=name, value=value)
            raise ConfigurationError(f"Invalid {name}: {value!r} (must be >= 0)")


class Settings:
    """
    Main system configuration.

    Priority order:
    1. Default values
    2. .talentrank file (SOURCE OF TRUTH)
    3. Environment variables
    4. Explicit overrides passed by the caller
    """

    def __init__(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        config_path: Optional[Path] = None,
    ) -> None:
        self._config_path = config_path
        self.config = self._load_config()
        if overrides:
            self._deep_merge(self.config, copy.deepcopy(dict(overrides)))
        self._validate_config()
        self.validator = ConfigValidator()
        self.validator.validate_config(self.config)
        logger.info(
            "Settings initialized",
            config_source=".talentrank" if self._find_config_file() else "defaults",
        )

    def _get_default_config(self) -> Dict[str, Any]:
        """Default configuration, mirroring the values the web application shipped with."""
        return {
            "version": "1.0",
            "provider": {
                "base_url": "https://models.inference.ai.azure.com",
                "token": None,
                "embedding_model": "text-embedding-3-large",
                "chat_model": "gpt-4o-mini",
                "embedding_dimensions": 3072,
                "max_input_chars": 8000,
                "request_timeout": 60,
                "health_freshness_seconds": 300,
            },
            "logging": {"level": "INFO", "debug_mode": False},
            "cache": {
                "embeddings": {
                    "ttl_seconds": 3600,
                    "max_entries": 200,
                    "max_size_bytes": 20 * 1024 * 1024,
                },
            },
            "rate_limits": {
                "ai_requests": {"max_requests": 20, "window_seconds": 60},
                "api_requests": {"max_requests": 60, "window_seconds": 60},
            },
            "api": {"host": "127.0.0.1", "port": 8000, "cors_origins": ["*"]},
            "retry": {
                "embedding": {
                    "max_attempts": 3,
                    "base_delay": 2.0,
                    "max_delay": 8.0,
                    "backoff_multiplier": 2,
                },
                "chat_completion": {
                    "max_attempts": 2,
                    "base_delay": 1.5,
                    "max_delay": 6.0,
                    "backoff_multiplier": 2,
                },
            },
            "matching": {
                "vector_weight": 0.7,
                "lexical_weight": 0.3,
                "min_token_length": 3,
                "relevance_floor": 0.01,
                "default_count": 5,
                "min_count": 1,
                "max_count": 50,
                "count_policy": "default",
                "missing_embedding_policy": "exclude",
            },
            "chat": {
                "analysis_max_tokens": 1500,
                "analysis_temperature": 0.3,
                "general_max_tokens": 800,
                "general_temperature": 0.5,
                "context_messages": 6,
                "resume_preview_chars": 1500,
            },
        }

    def _find_config_file(self) -> Optional[Path]:
        """Locate the .talentrank file (explicit path first, then the working directory)."""
        if self._config_path is not None:
            return self._config_path if self._config_path.exists() else None

        local_config = Path.cwd() / ".talentrank"
        if local_config.is_file():
            return local_config
        return None

    def _load_config(self) -> Dict[str, Any]:
        """Load defaults, then the .talentrank file, then environment overrides."""
        defaults = self._get_default_config()

        config_path = self._find_config_file()
        if config_path is not None:
            try:
                with open(config_path, encoding='utf-8') as f:
                    file_config = yaml.safe_load(f)
            except (OSError, yaml.YAMLError) as e:
                logger.error(
                    "Error reading configuration file", file=str(config_path), error=str(e)
                )
                raise ConfigurationError(f"Error reading configuration file: {e}", cause=e)

            if file_config:
                if not isinstance(file_config, dict):
                    raise ConfigurationError(
                        f"Configuration file {config_path} must contain a mapping"
                    )
                self._deep_merge(defaults, file_config)
                logger.debug("Config loaded from .talentrank", keys=list(file_config.keys()))

        env_overrides = {
            "TALENTRANK_API_TOKEN": ("provider", "token"),
            "TALENTRANK_BASE_URL": ("provider", "base_url"),
            "TALENTRANK_EMBEDDING_MODEL": ("provider", "embedding_model"),
            "TALENTRANK_CHAT_MODEL": ("provider", "chat_model"),
            "TALENTRANK_LOG_LEVEL": ("logging", "level"),
        }

        for env_key, path_tuple in env_overrides.items():
            env_value = os.getenv(env_key)
            if env_value:
                self._set_nested(defaults, path_tuple, env_value)

        return defaults

    def _deep_merge(self, base: Dict[str, Any], update: Dict[str, Any]) -> None:
        """Deep merge of dictionaries."""
        for key, value in update.items():
            if key in base and isinstance(base[key], dict) and isinstance(value, dict):
                self._deep_merge(cast(Dict[str, Any], base[key]), cast(Dict[str, Any], value))
            else:
                base[key] = value

    def _set_nested(self, data: Dict[str, Any], path: tuple[str, ...], value: Any) -> None:
        """Set value at nested path."""
        current = data
        for key in path[:-1]:
            if key not in current:
                current[key] = {}
            current = current[key]
        current[path[-1]] = value

    def _validate_config(self) -> None:
        """Fill required sections missing from the loaded configuration."""
        required_sections = [
            "version",
            "provider",
            "cache",
            "rate_limits",
            "retry",
            "matching",
            "chat",
        ]

        missing_sections = [section for section in required_sections if section not in self.config]

        if missing_sections:
            logger.warning(
                "Configuration missing required sections, using defaults",
                missing=missing_sections,
            )
            defaults = self._get_default_config()
            for section in missing_sections:
                self.config[section] = defaults[section]

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value; dotted paths like "matching.vector_weight" are supported."""
        if "." in key:
            current: Any = self.config
            for part in key.split("."):
                if isinstance(current, dict) and part in current:
                    current = current[part]
                else:
                    return default
            return current
        return self.config.get(key, default)

    def require(self, key: str) -> Any:
        """Get a value that must exist, raising ConfigurationError otherwise."""
        sentinel = object()
        value = self.get(key, sentinel)
        if value is sentinel:
            logger.error("Required config missing", key=key)
            raise ConfigurationError(f"Missing required config: {key}")
        return value
