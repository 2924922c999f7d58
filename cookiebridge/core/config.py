"""Configuration management for cookiebridge.

The extraction core never reads the process environment itself. Environment
variables and the optional JSON settings file are read here, once, and mapped
into an immutable ``ExtractorConfig`` that is handed to the orchestrator.
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping, Optional

from .constants import (
    CONFIG_FILE,
    CONFIG_VERSION,
    DEFAULT_BROWSERS,
    DEFAULT_HASH_PREFIX_META_VERSION,
    DEFAULT_SECRET_TIMEOUT_SECONDS,
    DEFAULT_SETTINGS,
    ENV_BROWSERS,
    ENV_CHROME_PROFILE,
    ENV_CONFIG_FILE,
    ENV_EDGE_PROFILE,
    ENV_FIREFOX_PROFILE,
    ENV_LINUX_KEYRING,
    ENV_MODE,
    ENV_SAFE_STORAGE_PASSWORD,
    ENV_SOURCES,
    LINUX_KEYRING_BACKENDS,
    MODE_MERGE,
    SUPPORTED_BROWSERS,
    VALID_MODES,
)

logger = logging.getLogger(__name__)

_TOKEN_SPLIT = re.compile(r"[,\s]+")


class ConfigError(Exception):
    """Raised when configuration is invalid."""
    pass


@dataclass(frozen=True)
class ExtractorConfig:
    """Explicit configuration passed into the orchestrator."""

    browsers: tuple[str, ...] = DEFAULT_BROWSERS
    mode: str = MODE_MERGE
    chrome_profile: Optional[str] = None
    edge_profile: Optional[str] = None
    firefox_profile: Optional[str] = None
    linux_keyring_backend: Optional[str] = None
    # Bypasses Linux keyring probing entirely; never logged
    safe_storage_password: Optional[str] = field(default=None, repr=False)
    hash_prefix_meta_version: int = DEFAULT_HASH_PREFIX_META_VERSION
    secret_timeout_seconds: float = DEFAULT_SECRET_TIMEOUT_SECONDS
    use_external_chrome_reader: bool = True


def parse_browsers(raw: Optional[str]) -> Optional[tuple[str, ...]]:
    """
    Parse a comma/space separated browser list.

    Unknown tokens are ignored and duplicates collapsed.

    Returns:
        Ordered browser names, or None if nothing usable was given.
    """
    if not raw:
        return None
    browsers: list[str] = []
    for token in _TOKEN_SPLIT.split(raw):
        name = token.strip().lower()
        if name in SUPPORTED_BROWSERS and name not in browsers:
            browsers.append(name)
    return tuple(browsers) if browsers else None


def parse_mode(raw: Optional[str]) -> Optional[str]:
    """Return "merge"/"first" for a valid raw mode, else None."""
    if not raw:
        return None
    normalized = raw.strip().lower()
    return normalized if normalized in VALID_MODES else None


def parse_linux_keyring(raw: Optional[str]) -> Optional[str]:
    """Return a known Linux keyring backend name, else None."""
    if not raw:
        return None
    normalized = raw.strip().lower()
    return normalized if normalized in LINUX_KEYRING_BACKENDS else None


def read_env(environ: Mapping[str, str], key: str) -> Optional[str]:
    """Return a trimmed, non-empty environment value or None."""
    value = environ.get(key)
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def load_config_from_env(
    environ: Optional[Mapping[str, str]] = None,
    base: Optional[ExtractorConfig] = None,
) -> ExtractorConfig:
    """
    Layer environment overrides on top of a base configuration.

    Args:
        environ: Environment mapping (defaults to os.environ)
        base: Configuration to override (defaults to ExtractorConfig())

    Returns:
        A new ExtractorConfig.
    """
    env = os.environ if environ is None else environ
    config = base or ExtractorConfig()
    overrides: dict[str, Any] = {}

    browsers = parse_browsers(read_env(env, ENV_BROWSERS) or read_env(env, ENV_SOURCES))
    if browsers:
        overrides["browsers"] = browsers

    mode = parse_mode(read_env(env, ENV_MODE))
    if mode:
        overrides["mode"] = mode

    for key, attr in (
        (ENV_CHROME_PROFILE, "chrome_profile"),
        (ENV_EDGE_PROFILE, "edge_profile"),
        (ENV_FIREFOX_PROFILE, "firefox_profile"),
    ):
        value = read_env(env, key)
        if value:
            overrides[attr] = value

    backend = parse_linux_keyring(read_env(env, ENV_LINUX_KEYRING))
    if backend:
        overrides["linux_keyring_backend"] = backend

    password = read_env(env, ENV_SAFE_STORAGE_PASSWORD)
    if password is not None:
        overrides["safe_storage_password"] = password

    return replace(config, **overrides) if overrides else config


class ConfigManager:
    """Loads and validates the optional JSON settings file."""

    def __init__(self, config_path: Path | None = None):
        self.config_path = config_path or CONFIG_FILE
        self._config: dict[str, Any] = {}
        self.load()

    def _create_default_config(self) -> dict[str, Any]:
        """Generate default configuration."""
        return {
            "version": CONFIG_VERSION,
            "settings": DEFAULT_SETTINGS.copy(),
        }

    def _validate_config(self, config: Any) -> list[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not isinstance(config, dict):
            return ["Configuration must be a JSON object"]

        if not isinstance(config.get("version"), int):
            errors.append("Missing or invalid 'version' field")

        settings = config.get("settings")
        if not isinstance(settings, dict):
            errors.append("Missing or invalid 'settings' field")
            return errors

        browsers = settings.get("browsers")
        if browsers is not None:
            if not isinstance(browsers, list) or not all(isinstance(b, str) for b in browsers):
                errors.append("'browsers' must be a list of strings")
            else:
                unknown = [b for b in browsers if b.lower() not in SUPPORTED_BROWSERS]
                if unknown:
                    errors.append(
                        f"Unknown browsers {unknown}: must be one of "
                        f"{', '.join(SUPPORTED_BROWSERS)}"
                    )

        mode = settings.get("mode")
        if mode is not None and parse_mode(mode) is None:
            errors.append(f"Invalid mode '{mode}': must be 'merge' or 'first'")

        backend = settings.get("linux_keyring_backend")
        if backend is not None and parse_linux_keyring(backend) is None:
            errors.append(
                f"Invalid linux_keyring_backend '{backend}': must be one of "
                f"{', '.join(sorted(LINUX_KEYRING_BACKENDS))}"
            )

        meta_version = settings.get("hash_prefix_meta_version")
        if meta_version is not None and (
            not isinstance(meta_version, int) or isinstance(meta_version, bool) or meta_version < 0
        ):
            errors.append("'hash_prefix_meta_version' must be a non-negative integer")

        timeout = settings.get("secret_timeout_seconds")
        if timeout is not None and (
            not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0
        ):
            errors.append("'secret_timeout_seconds' must be a positive number")

        return errors

    def load(self) -> None:
        """Load configuration from file, falling back to defaults if absent."""
        if not self.config_path.exists():
            logger.debug("Config file not found, using defaults: %s", self.config_path)
            self._config = self._create_default_config()
            return

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                loaded_config = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file: {e}") from e

        errors = self._validate_config(loaded_config)
        if errors:
            for error in errors:
                logger.error("Config validation error: %s", error)
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")

        self._config = loaded_config
        logger.debug("Configuration loaded from %s", self.config_path)

    def save(self) -> None:
        """Save current configuration to file."""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.config_path, "w", encoding="utf-8") as f:
            json.dump(self._config, f, indent=2)
        logger.debug("Configuration saved to %s", self.config_path)

    @property
    def settings(self) -> dict[str, Any]:
        """Return settings."""
        return self._config.get("settings", {}).copy()

    def update_settings(self, **kwargs: Any) -> None:
        """Update settings with provided values after validation."""
        candidate = {
            "version": self._config.get("version", CONFIG_VERSION),
            "settings": {**self.settings, **kwargs},
        }
        errors = self._validate_config(candidate)
        if errors:
            raise ConfigError(f"Configuration validation failed: {'; '.join(errors)}")
        self._config = candidate

    def extractor_config(self, environ: Optional[Mapping[str, str]] = None) -> ExtractorConfig:
        """
        Build the effective configuration: defaults, then file, then environment.

        Args:
            environ: Environment mapping (defaults to os.environ)
        """
        settings = self.settings
        file_values: dict[str, Any] = {}

        browsers = settings.get("browsers")
        if browsers:
            parsed = parse_browsers(",".join(browsers))
            if parsed:
                file_values["browsers"] = parsed
        if settings.get("mode"):
            file_values["mode"] = parse_mode(settings["mode"])
        for attr in ("chrome_profile", "edge_profile", "firefox_profile"):
            if isinstance(settings.get(attr), str) and settings[attr].strip():
                file_values[attr] = settings[attr].strip()
        if settings.get("linux_keyring_backend"):
            file_values["linux_keyring_backend"] = parse_linux_keyring(
                settings["linux_keyring_backend"]
            )
        if "hash_prefix_meta_version" in settings:
            file_values["hash_prefix_meta_version"] = int(settings["hash_prefix_meta_version"])
        if "secret_timeout_seconds" in settings:
            file_values["secret_timeout_seconds"] = float(settings["secret_timeout_seconds"])
        if "use_external_chrome_reader" in settings:
            file_values["use_external_chrome_reader"] = bool(settings["use_external_chrome_reader"])

        base = ExtractorConfig(**file_values)
        return load_config_from_env(environ, base)


def load_config(environ: Optional[Mapping[str, str]] = None) -> ExtractorConfig:
    """
    Load the effective configuration at the process edge.

    The settings file path comes from COOKIEBRIDGE_CONFIG when set.

    Raises:
        ConfigError: If the settings file exists but is invalid.
    """
    env = os.environ if environ is None else environ
    path_value = read_env(env, ENV_CONFIG_FILE)
    manager = ConfigManager(Path(path_value).expanduser() if path_value else None)
    return manager.extractor_config(env)
