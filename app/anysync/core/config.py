"""Configuration model and I/O for anysync.

Two on-disk formats are supported:

- The classic key/value file (``/etc/anysync.conf``)::

      # Volatile storage root
      TMPFS = /tmp/anysync
      RSYNC_BIN = rsync
      WHATTOSYNC = /home/user/.cache, /home/user/Projects

- TOML, selected by a ``.toml`` suffix, with lower-case keys ``tmpfs``,
  ``rsync_bin`` and ``whattosync`` (a list or a comma-separated string).
"""

import logging
import os
import stat
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from anysync.core.paths import get_config_path
from anysync.relocation.mirror import DEFAULT_COPY_TOOL
from anysync.utils.shell import resolve_executable

logger = logging.getLogger(__name__)

# Key/value file option names
KEY_VOLATILE_ROOT = "TMPFS"
KEY_COPY_TOOL = "RSYNC_BIN"
KEY_SOURCES = "WHATTOSYNC"

_KNOWN_KEYS = (KEY_VOLATILE_ROOT, KEY_COPY_TOOL, KEY_SOURCES)
_COMMENT = "#"
_SEPARATOR = "="


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the configuration file does not exist."""


class ConfigParseError(ConfigError):
    """Raised when the configuration file cannot be parsed."""


class ConfigValidationError(ConfigError):
    """Raised when configuration values are missing or invalid."""


def _normalize_absolute(value: Path, what: str) -> Path:
    if not value.is_absolute():
        msg = f"{what} must be absolute: {value}"
        raise ValueError(msg)
    return Path(os.path.normpath(value))


def split_source_list(value: str) -> list[str]:
    """Split a comma-separated source list, dropping empty items."""
    return [item.strip() for item in value.split(",") if item.strip()]


class SyncConfig(BaseModel):
    """Validated anysync configuration.

    Attributes:
        volatile_root: Root of the volatile storage area. It does not have
            to exist yet; prepare creates it.
        copy_tool: Name or path of the rsync-compatible copy tool.
        sources: Sync source directories, absolute and unique, in order.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    volatile_root: Annotated[Path, Field(description="Volatile storage root (TMPFS)")]
    copy_tool: Annotated[
        str,
        Field(min_length=1, description="Copy tool executable (RSYNC_BIN)"),
    ] = DEFAULT_COPY_TOOL
    sources: Annotated[
        tuple[Path, ...],
        Field(min_length=1, description="Sync source directories (WHATTOSYNC)"),
    ]

    @field_validator("volatile_root")
    @classmethod
    def validate_volatile_root(cls, v: Path) -> Path:
        """Require an absolute volatile root other than the filesystem root."""
        root = _normalize_absolute(v, "Volatile root")
        if root == Path("/"):
            msg = "Volatile root cannot be the filesystem root"
            raise ValueError(msg)
        return root

    @field_validator("copy_tool", mode="before")
    @classmethod
    def strip_copy_tool(cls, v: object) -> object:
        """Strip surrounding whitespace from the copy tool name."""
        return v.strip() if isinstance(v, str) else v

    @field_validator("sources", mode="before")
    @classmethod
    def split_sources(cls, v: object) -> object:
        """Accept a comma-separated string as well as a sequence."""
        if isinstance(v, str):
            return split_source_list(v)
        return v

    @field_validator("sources")
    @classmethod
    def validate_sources(cls, v: tuple[Path, ...]) -> tuple[Path, ...]:
        """Require absolute paths and drop duplicates, keeping the first."""
        unique: list[Path] = []
        for source in v:
            path = _normalize_absolute(source, "Sync source")
            if path == Path("/"):
                msg = "Sync source cannot be the filesystem root"
                raise ValueError(msg)
            if path not in unique:
                unique.append(path)
        return tuple(unique)

    @model_validator(mode="after")
    def validate_sources_outside_volatile_root(self) -> "SyncConfig":
        """Reject sources that live inside the volatile root."""
        for source in self.sources:
            if source.is_relative_to(self.volatile_root):
                msg = f"Sync source {source} is inside the volatile root {self.volatile_root}"
                raise ValueError(msg)
        return self


def parse_key_values(text: str) -> dict[str, str]:
    """Parse the classic ``KEY = value`` format.

    Blank lines and lines starting with ``#`` are ignored. The first ``=``
    separates key from value; both are stripped. Later keys override
    earlier ones.

    Raises:
        ConfigParseError: If a line has no ``=`` or an empty key.
    """
    values: dict[str, str] = {}
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith(_COMMENT):
            continue

        key, sep, value = line.partition(_SEPARATOR)
        key = key.strip()
        if not sep or not key:
            msg = f"Could not parse line {lineno}: {line}"
            raise ConfigParseError(msg)
        values[key] = value.strip()
    return values


def _from_key_values(values: dict[str, str]) -> dict[str, object]:
    """Map key/value options onto SyncConfig fields."""
    for key in values:
        if key not in _KNOWN_KEYS:
            logger.warning("Ignoring unknown configuration option: %s", key)

    if KEY_VOLATILE_ROOT not in values:
        msg = f"No {KEY_VOLATILE_ROOT} defined"
        raise ConfigValidationError(msg)
    if not values[KEY_VOLATILE_ROOT]:
        msg = f"Empty {KEY_VOLATILE_ROOT} path defined"
        raise ConfigValidationError(msg)
    if KEY_SOURCES not in values:
        msg = f"No {KEY_SOURCES} defined"
        raise ConfigValidationError(msg)

    data: dict[str, object] = {
        "volatile_root": values[KEY_VOLATILE_ROOT],
        "sources": split_source_list(values[KEY_SOURCES]),
    }
    if KEY_COPY_TOOL in values:
        if not values[KEY_COPY_TOOL]:
            msg = f"Empty {KEY_COPY_TOOL} path defined"
            raise ConfigValidationError(msg)
        data["copy_tool"] = values[KEY_COPY_TOOL]
    return data


def _from_toml(data: dict[str, object]) -> dict[str, object]:
    """Map TOML keys onto SyncConfig fields."""
    known = {key.lower(): key for key in _KNOWN_KEYS}
    for key in data:
        if key not in known:
            logger.warning("Ignoring unknown configuration option: %s", key)

    if "tmpfs" not in data:
        msg = "No tmpfs defined"
        raise ConfigValidationError(msg)
    if "whattosync" not in data:
        msg = "No whattosync defined"
        raise ConfigValidationError(msg)

    result: dict[str, object] = {
        "volatile_root": data["tmpfs"],
        "sources": data["whattosync"],
    }
    if "rsync_bin" in data:
        result["copy_tool"] = data["rsync_bin"]
    return result


def check_volatile_root_parents(volatile_root: Path) -> None:
    """Require every parent of the volatile root to be traversable by all users.

    The volatile root itself may be missing; its parents must exist.

    Raises:
        ConfigValidationError: If a parent cannot be stat-ed or lacks an
            executable bit for user, group or other.
    """
    for parent in volatile_root.parents:
        if parent == Path("/"):
            break
        try:
            mode = parent.stat().st_mode
        except OSError as e:
            msg = f"The volatile root parent path '{parent}' access error: {e}"
            raise ConfigValidationError(msg) from e
        if mode & 0o111 != 0o111:
            msg = (
                f"The volatile root parent path '{parent}' did not have "
                "executable bit set for all users"
            )
            raise ConfigValidationError(msg)


def resolve_copy_tool(copy_tool: str) -> str:
    """Resolve the copy tool to an absolute executable path.

    Raises:
        ConfigValidationError: If the tool is not an executable on PATH.
    """
    resolved = resolve_executable(copy_tool)
    if resolved is None:
        msg = f"Could not find the copy tool: {copy_tool}"
        raise ConfigValidationError(msg)
    return resolved


def load_config(path: Path | None = None, *, check_environment: bool = True) -> SyncConfig:
    """Load and validate the configuration file.

    Args:
        path: Configuration file. If None, uses the default config path.
        check_environment: Also verify the volatile root's parents and
            resolve the copy tool on this host.

    Returns:
        Validated SyncConfig. With ``check_environment`` the copy tool is
        an absolute path.

    Raises:
        ConfigNotFoundError: If the file does not exist.
        ConfigParseError: If the file cannot be parsed.
        ConfigValidationError: If values are missing or invalid.
        ConfigError: If the file cannot be read.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        msg = f"Config file not found: {config_path}"
        raise ConfigNotFoundError(msg)

    try:
        if config_path.suffix == ".toml":
            with open(config_path, "rb") as f:
                data = _from_toml(tomllib.load(f))
        else:
            data = _from_key_values(parse_key_values(config_path.read_text(encoding="utf-8")))
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML syntax in {config_path}: {e}"
        raise ConfigParseError(msg) from e
    except UnicodeDecodeError as e:
        msg = f"Config file {config_path} is not valid UTF-8: {e}"
        raise ConfigParseError(msg) from e
    except OSError as e:
        msg = f"Failed to read config file {config_path}: {e}"
        raise ConfigError(msg) from e

    try:
        config = SyncConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid configuration in {config_path}: {e}"
        raise ConfigValidationError(msg) from e

    if check_environment:
        check_volatile_root_parents(config.volatile_root)
        config = config.model_copy(update={"copy_tool": resolve_copy_tool(config.copy_tool)})

    logger.debug("Loaded configuration from %s", config_path)
    return config


def save_config(config: SyncConfig, path: Path | None = None) -> Path:
    """Save the configuration atomically.

    Uses TOML for a ``.toml`` suffix and the key/value format otherwise.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            if config_path.suffix == ".toml":
                tomli_w.dump(config_to_toml(config), f)
            else:
                f.write(config_to_key_values(config).encode("utf-8"))
        # Readable by the unprivileged users whose directories are synced
        os.chmod(tmp_path, stat.S_IRUSR | stat.S_IWUSR | stat.S_IRGRP | stat.S_IROTH)
        os.replace(tmp_path, config_path)
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        msg = f"Failed to write config file {config_path}: {e}"
        raise ConfigError(msg) from e

    return config_path


def config_to_toml(config: SyncConfig) -> dict[str, object]:
    """Convert a SyncConfig to a TOML document."""
    return {
        "tmpfs": str(config.volatile_root),
        "rsync_bin": config.copy_tool,
        "whattosync": [str(s) for s in config.sources],
    }


def config_to_key_values(config: SyncConfig) -> str:
    """Render a SyncConfig in the classic key/value format."""
    lines = [
        "# anysync configuration",
        f"{KEY_VOLATILE_ROOT} = {config.volatile_root}",
        f"{KEY_COPY_TOOL} = {config.copy_tool}",
        f"{KEY_SOURCES} = {', '.join(str(s) for s in config.sources)}",
    ]
    return "\n".join(lines) + "\n"
