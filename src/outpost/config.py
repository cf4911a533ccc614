"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles all persistent configuration for outpost:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.outpost/`` on macOS and Windows. See :func:`get_config_dir`,
  :func:`get_cache_dir`, :func:`get_data_dir`.
* **Global config** -- A single :class:`~outpost.models.GlobalConfig`
  JSON file storing the endpoint, license key source, site identity and
  reported packages.
* **Precedence resolution** -- :func:`resolve_config` merges CLI flags,
  environment variables and the config file into the effective
  configuration.
* **License key resolution** -- :func:`resolve_license_key` reads the key
  from an env var, a file, or a literal value.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`) to prevent data loss on crash or power failure.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from outpost.exceptions import ConfigError
from outpost.models import GlobalConfig

_APP_NAME = "outpost"
_CONFIG_FILENAME = "config.json"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/outpost/`` (default ``~/.config/outpost/``).
    On macOS/Windows: ``~/.outpost/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CONFIG_HOME", (".config",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """Return the cache directory, creating it if necessary.

    Holds the check-in response cache. Cached data can be safely deleted
    at any time; the next check-in simply goes to the network.

    On Linux/BSD: ``$XDG_CACHE_HOME/outpost/`` (default ``~/.cache/outpost/``).
    On macOS/Windows: ``~/.outpost/cache/``.

    Returns:
        Absolute path to the cache directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_CACHE_HOME", (".cache",))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "cache"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/outpost/`` (default ``~/.local/share/outpost/``).
    On macOS/Windows: ``~/.outpost/logs/``.
    """
    if _is_xdg_platform():
        base = _xdg_base("XDG_DATA_HOME", (".local", "share"))
        path = base / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is guaranteed to be an atomic rename on POSIX systems.
    On any failure the temp file is cleaned up.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None  # prevent double-close below
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def global_config_path() -> Path:
    """Path to the global config file.

    ``OUTPOST_CONFIG`` points at an alternative file, which is handy for
    running several installations from one account.
    """
    override = os.environ.get("OUTPOST_CONFIG")
    if override:
        return Path(override).expanduser()
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration.

    Returns:
        The deserialised :class:`~outpost.models.GlobalConfig`. If the
        file does not exist, a default instance is returned.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        text = path.read_text(encoding="utf-8")
        data = json.loads(text)
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    _atomic_write(global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(cli_endpoint: Optional[str] = None) -> GlobalConfig:
    """Resolve config with full precedence chain.

    Precedence (high to low):
        1. CLI flags (``cli_endpoint``)
        2. Environment variables (``OUTPOST_ENDPOINT``)
        3. Config file (``OUTPOST_CONFIG`` or ``~/.config/outpost/config.json``)
        4. Defaults

    Returns:
        The effective :class:`~outpost.models.GlobalConfig`.
    """
    config = load_global_config()

    env_endpoint = os.environ.get("OUTPOST_ENDPOINT")
    if cli_endpoint is not None:
        config.endpoint = cli_endpoint
    elif env_endpoint:
        config.endpoint = env_endpoint

    return config


def resolve_cache_dir(config: GlobalConfig) -> Path:
    """Return the directory for the response cache of *config*."""
    if config.cache.directory:
        path = Path(config.cache.directory).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path
    return get_cache_dir()


# --- License key resolution ---


def resolve_license_key(source: str) -> Optional[str]:
    """Resolve the license key from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``; an unset
          variable yields ``None`` (unlicensed installs still check in)
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"value:LITERAL"`` -- the literal text after the prefix

    Args:
        source: The source descriptor string.

    Returns:
        The license key, or ``None`` when the environment variable is unset.

    Raises:
        ConfigError: If the file cannot be read or the format is unknown.
    """
    if source.startswith("env:"):
        return os.environ.get(source[4:]) or None

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"License key file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read license key file {path}: {exc}") from exc

    if source.startswith("value:"):
        return source[6:]

    raise ConfigError(f"Unknown license key source format: {source}")
