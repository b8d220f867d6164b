"""Settings management with XDG paths, atomic writes, and environment overrides.

This module handles all persistent configuration for moesifkeys:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.moesifkeys/`` on macOS and Windows. See :func:`get_config_dir`.
* **Settings** -- a single :class:`~moesifkeys.models.Settings` JSON file.
  Managed via :func:`load_settings` and :func:`save_settings`.
* **Environment overrides** -- ``MOESIFKEYS_BASE_URL``,
  ``MOESIFKEYS_USERNAME`` and ``MOESIFKEYS_AUTH_SOURCE`` take precedence
  over the file.
* **Credential resolution** -- :func:`resolve_credential` reads secrets
  from env vars, files, or an interactive prompt.

All file writes use an atomic temp-file-then-rename strategy
(:func:`_atomic_write`).
"""

from __future__ import annotations

import getpass
import json
import os
import platform
import sys
import tempfile
from pathlib import Path
from typing import Optional

from moesifkeys.exceptions import ConfigError
from moesifkeys.models import Settings

_APP_NAME = "moesifkeys"
_CONFIG_FILENAME = "config.json"

_ENV_BASE_URL = "MOESIFKEYS_BASE_URL"
_ENV_USERNAME = "MOESIFKEYS_USERNAME"
_ENV_AUTH_SOURCE = "MOESIFKEYS_AUTH_SOURCE"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/moesifkeys/`` (default ``~/.config/moesifkeys/``).
    On macOS/Windows: ``~/.moesifkeys/``.

    Returns:
        Absolute path to the configuration directory (guaranteed to exist).
    """
    if _is_xdg_platform():
        env_value = os.environ.get("XDG_CONFIG_HOME", "")
        base = Path(env_value) if env_value else Path.home() / ".config"
        path = base / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


def settings_path() -> Path:
    """Path to the settings file."""
    return get_config_dir() / _CONFIG_FILENAME


# --- Atomic file writes ---


def _atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up.
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
        fd = None
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


# --- Settings ---


def load_settings(path: Optional[Path] = None) -> Settings:
    """Load settings from disk and apply environment overrides.

    Args:
        path: Explicit settings file. Defaults to :func:`settings_path`.

    Returns:
        The effective :class:`~moesifkeys.models.Settings`. When the file
        does not exist, defaults are used.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = path or settings_path()
    if path.is_file():
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            settings = Settings.model_validate(data)
        except (json.JSONDecodeError, ValueError) as exc:
            raise ConfigError(f"Invalid settings at {path}: {exc}") from exc
    else:
        settings = Settings()
    return apply_env_overrides(settings)


def apply_env_overrides(settings: Settings) -> Settings:
    """Overlay ``MOESIFKEYS_*`` environment variables onto *settings* in place."""
    base_url = os.environ.get(_ENV_BASE_URL)
    if base_url:
        settings.microservice.base_url = base_url
    username = os.environ.get(_ENV_USERNAME)
    if username:
        settings.auth.username = username
    source = os.environ.get(_ENV_AUTH_SOURCE)
    if source:
        settings.auth.source = source
    return settings


def save_settings(settings: Settings, path: Optional[Path] = None) -> None:
    """Persist settings atomically to disk.

    Args:
        settings: The settings to save.
        path: Explicit settings file. Defaults to :func:`settings_path`.
    """
    data = settings.model_dump(mode="json")
    _atomic_write(path or settings_path(), json.dumps(data, indent=2) + "\n")


# --- Credential source resolution ---


def resolve_credential(source: str) -> str:
    """Resolve a secret from its source descriptor.

    Supported formats:
        - ``"env:VAR_NAME"`` -- reads ``os.environ["VAR_NAME"]``
        - ``"file:/path/to/file"`` -- reads file content, stripped of whitespace
        - ``"prompt"`` -- prompts user interactively (requires a TTY)

    Args:
        source: The source descriptor string.

    Returns:
        The resolved secret string.

    Raises:
        ConfigError: If the source can't be resolved.
    """
    if source.startswith("env:"):
        var_name = source[4:]
        value = os.environ.get(var_name)
        if value is None:
            raise ConfigError(
                f"Environment variable '{var_name}' is not set (source: {source})"
            )
        return value

    if source.startswith("file:"):
        path = Path(source[5:]).expanduser()
        if not path.is_file():
            raise ConfigError(f"Credential file not found: {path} (source: {source})")
        try:
            return path.read_text(encoding="utf-8").strip()
        except OSError as exc:
            raise ConfigError(f"Cannot read credential file {path}: {exc}") from exc

    if source == "prompt":
        if not sys.stdin.isatty():
            raise ConfigError(
                "Cannot prompt for credentials: stdin is not a TTY (source: prompt)"
            )
        return getpass.getpass("Microservice password: ")

    raise ConfigError(f"Unknown credential source format: {source}")
