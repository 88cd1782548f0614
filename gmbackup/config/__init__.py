"""Persistent settings for gmbackup.

Settings live in a single TOML file, config.toml, under the config
directory. Only one table is read today, [defaults], which supplies the
account, backup directory, listing query and OAuth client that the
command line falls back on.

A missing file is not an error: every setting has a built-in default,
so gmbackup runs with no config at all.

    from gmbackup.config import get_defaults, load_config

    mail_dir = get_defaults(load_config()).get("mail_dir", "~/mail")
"""

import tomllib

import tomli_w

from .paths import CONFIG_FILE, ensure_config_dir
from .schema import DefaultsConfig, GmbackupConfig
from .template import CONFIG_TEMPLATE

__all__ = [
    "CONFIG_FILE",
    "get_defaults",
    "init_config",
    "load_config",
    "save_config",
    "set_config_value",
]

# Parsed config.toml for the lifetime of the process. None until the
# first load, and again after init_config rewrites the file.
_cached_config: GmbackupConfig | None = None


def _read_config_file() -> GmbackupConfig:
    if not CONFIG_FILE.exists():
        return {}

    with open(CONFIG_FILE, "rb") as f:
        return tomllib.load(f)


def load_config(*, force_reload: bool = False) -> GmbackupConfig:
    """Return the parsed config file, reading it at most once.

    Args:
        force_reload: Read config.toml again even if it was already
            parsed, e.g. before modifying it.

    Returns:
        The settings, or an empty dict when config.toml doesn't exist.

    Raises:
        tomllib.TOMLDecodeError: config.toml is not valid TOML. This is
            a ValueError subclass.
        OSError: config.toml exists but can't be read.
    """
    global _cached_config

    if force_reload or _cached_config is None:
        _cached_config = _read_config_file()

    return _cached_config


def save_config(config: GmbackupConfig) -> None:
    """Write settings to config.toml, replacing its contents.

    The config directory is created first if it's missing. Comments
    from the template are not preserved.
    """
    global _cached_config

    ensure_config_dir()
    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(config, f)

    _cached_config = config


def init_config(*, overwrite: bool = False) -> bool:
    """Create config.toml from the commented template.

    Args:
        overwrite: Replace an existing config.toml.

    Returns:
        False if config.toml was already there and left untouched.
    """
    global _cached_config

    ensure_config_dir()
    if CONFIG_FILE.exists() and not overwrite:
        return False

    CONFIG_FILE.write_text(CONFIG_TEMPLATE)
    _cached_config = None
    return True


def get_defaults(config: GmbackupConfig) -> DefaultsConfig:
    """Get the [defaults] table, empty if not configured."""
    return config.get("defaults", {})


def _parent_table(config: dict, path: list[str]) -> dict:
    table = config
    for name in path:
        table = table.setdefault(name, {})
        if not isinstance(table, dict):
            raise ValueError(f"'{name}' is not a table")
    return table


def set_config_value(key: str, value: str) -> None:
    """Store a string setting addressed by a dotted key.

    Missing tables along the key are created, so
    set_config_value("defaults.mail_dir", "~/Backups/mail") works on an
    empty config.

    Raises:
        ValueError: The key has an empty segment, or one of its parents
            already holds a plain value.
    """
    names = key.split(".")
    if "" in names:
        raise ValueError(f"invalid key '{key}'")

    config = load_config(force_reload=True)
    _parent_table(config, names[:-1])[names[-1]] = value
    save_config(config)
