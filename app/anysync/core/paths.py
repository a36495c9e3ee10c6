"""Well-known paths for anysync.

System-wide locations (configuration file, process lock) follow the
layout used by the tmpfiles.d and systemd integration. Per-user
preferences such as the color theme follow the XDG Base Directory
Specification.

Defaults:
- Config: /etc/anysync.conf
- Lock: /run/anysync/process.lock
- Theme override: ~/.config/anysync/theme.toml
"""

import os
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "anysync"

DEFAULT_CONFIG_PATH = Path("/etc/anysync.conf")

# /run/anysync is created by tmpfiles.d as a root-owned 0755 directory
DEFAULT_LOCK_PATH = Path("/run/anysync/process.lock")

CONFIG_ENV_VAR = "ANYSYNC_CONFIG"
LOCK_ENV_VAR = "ANYSYNC_LOCK"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_user_config_dir() -> Path:
    """Get the per-user configuration directory path.

    Returns:
        Path to ~/.config/anysync/ (or XDG_CONFIG_HOME/anysync/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_user_theme_path() -> Path:
    """Get the user theme override path.

    Returns:
        Path to ~/.config/anysync/theme.toml.
    """
    return get_user_config_dir() / "theme.toml"


def get_config_path() -> Path:
    """Get the configuration file path.

    The ANYSYNC_CONFIG environment variable overrides the system default.

    Returns:
        Path to the configuration file.
    """
    override = os.environ.get(CONFIG_ENV_VAR)
    if override:
        return Path(override)
    return DEFAULT_CONFIG_PATH
