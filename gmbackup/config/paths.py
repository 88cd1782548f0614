"""Path constants and directory utilities for gmbackup.

Follows the XDG Base Directory layout:
- Config: ~/.config/gmbackup/ (config.toml, OAuth client secrets)
- Cache: ~/.cache/gmbackup/ (OAuth token, with restricted permissions)
"""

from pathlib import Path


CONFIG_DIR = Path.home() / ".config" / "gmbackup"
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Client secrets downloaded from Google Cloud Console ("Desktop app")
CLIENT_SECRETS_FILE = CONFIG_DIR / "credentials.json"

# Token lives in the cache dir: losing it only means logging in again
CACHE_DIR = Path.home() / ".cache" / "gmbackup"
TOKEN_FILE = CACHE_DIR / "token.json"

DEFAULT_MAIL_DIR = Path.home() / "mail"


def ensure_config_dir() -> Path:
    """Create config directory if it doesn't exist.

    Returns the config directory path.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


def ensure_cache_dir() -> Path:
    """Create the token cache directory with restricted permissions.

    Sets directory permissions to 700 (owner read/write/execute only)
    to protect the cached OAuth token.

    Returns the cache directory path.
    """
    CACHE_DIR.mkdir(parents=True, exist_ok=True)
    CACHE_DIR.chmod(0o700)
    return CACHE_DIR
