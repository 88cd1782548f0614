"""Gmail authentication via OAuth 2.0 Installed Application Flow.

Uses the loopback redirect flow, which suits CLI applications: the
user's browser opens to Google's consent page and the authorization
code is captured by a short-lived HTTP server on 127.0.0.1.

Only read-only mailbox access is requested. The token is cached in
~/.cache/gmbackup/token.json and refreshed silently when it expires.
"""

import json
import os

from google.auth.exceptions import RefreshError, TransportError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from gmbackup.config import paths
from gmbackup.config.schema import DefaultsConfig
from gmbackup.errors import AuthError
from gmbackup.logger import get_logger

log = get_logger("auth")

SCOPES = ["https://www.googleapis.com/auth/gmail.readonly"]

# Environment variable for client secret.
# Using env var is preferred over storing in config.toml for security.
CLIENT_SECRET_ENV = "GMBACKUP_CLIENT_SECRET"

AUTH_URI = "https://accounts.google.com/o/oauth2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"


def _load_token() -> Credentials | None:
    """Load credentials from the token cache.

    Returns None if the token file doesn't exist or is invalid.
    """
    if not paths.TOKEN_FILE.exists():
        return None

    try:
        return Credentials.from_authorized_user_file(str(paths.TOKEN_FILE), SCOPES)
    except (ValueError, OSError) as e:
        log.warning("Ignoring unreadable token cache %s: %s", paths.TOKEN_FILE, e)
        return None


def _save_token(creds: Credentials) -> None:
    """Persist credentials to the token cache.

    Sets file permissions to 600 (owner read/write only) to protect tokens.
    """
    paths.ensure_cache_dir()

    paths.TOKEN_FILE.write_text(creds.to_json())
    paths.TOKEN_FILE.chmod(0o600)


def clear_token() -> bool:
    """Remove the cached token.

    Returns:
        True if a token file was removed.
    """
    if not paths.TOKEN_FILE.exists():
        return False

    paths.TOKEN_FILE.unlink()
    return True


def get_client_secret(defaults: DefaultsConfig) -> str | None:
    """Get client secret from environment variable or config.

    Environment variable takes precedence for security - secrets in
    environment variables are less likely to be accidentally committed.
    """
    return os.environ.get(CLIENT_SECRET_ENV) or defaults.get("client_secret")


def _build_client_config(client_id: str, client_secret: str) -> dict:
    """Build OAuth client configuration dict.

    Mirrors the JSON structure of a client secrets file downloaded
    from Google Cloud Console.
    """
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": ["http://127.0.0.1"],
        }
    }


def load_client_config(defaults: DefaultsConfig) -> dict:
    """Resolve the OAuth client configuration.

    credentials.json in the config dir wins. Otherwise the client ID
    from config.toml is combined with the client secret from the
    environment (or config.toml).

    Args:
        defaults: The [defaults] table of config.toml.

    Returns:
        Client configuration dict in the format expected by InstalledAppFlow.

    Raises:
        AuthError: If no usable client configuration exists.
    """
    if paths.CLIENT_SECRETS_FILE.exists():
        log.info("Using client credentials from: %s", paths.CLIENT_SECRETS_FILE)
        try:
            return json.loads(paths.CLIENT_SECRETS_FILE.read_text())
        except (ValueError, OSError) as e:
            raise AuthError(
                f"Unable to parse client secret file {paths.CLIENT_SECRETS_FILE}: {e}"
            ) from e

    client_id = defaults.get("client_id")
    client_secret = get_client_secret(defaults)

    if not client_id or not client_secret:
        raise AuthError(
            f"No OAuth client configured. Place credentials.json in "
            f"{paths.CONFIG_DIR}, or set defaults.client_id and the "
            f"{CLIENT_SECRET_ENV} environment variable."
        )

    log.info("Using client credentials from config file")
    return _build_client_config(client_id, client_secret)


def authenticate_loopback_flow(client_config: dict) -> Credentials:
    """Run the OAuth 2.0 loopback flow and cache the resulting token.

    Listens on a random local port, opens the browser to Google's
    consent page (the URL is also printed in case no browser can be
    launched), and exchanges the returned code for tokens.

    Raises:
        AuthError: If the flow fails or is abandoned.
    """
    try:
        flow = InstalledAppFlow.from_client_config(client_config, scopes=SCOPES)
        creds = flow.run_local_server(
            host="127.0.0.1",
            port=0,
            authorization_prompt_message=(
                "Go to the following link in your browser to authorize:\n{url}"
            ),
            success_message="Login successful! You can now close this window.",
            access_type="offline",
        )
    except Exception as e:
        raise AuthError(f"Authorization failed: {e}") from e

    _save_token(creds)
    return creds


def get_credentials(defaults: DefaultsConfig, *, interactive: bool = True) -> Credentials:
    """Get valid Gmail credentials.

    Reuses the cached token when valid, refreshes it when expired, and
    falls back to the browser flow otherwise.

    Args:
        defaults: The [defaults] table of config.toml.
        interactive: Allow launching the browser flow. When False a
            missing or unrefreshable token raises AuthError.

    Returns:
        Credentials usable with googleapiclient.

    Raises:
        AuthError: If no valid credentials can be obtained.
    """
    creds = _load_token()

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
            _save_token(creds)
            return creds
        except (RefreshError, TransportError) as e:
            if not interactive:
                raise AuthError(f"Unable to refresh token: {e}") from e
            log.warning("Token refresh failed, re-authenticating: %s", e)

    if not interactive:
        raise AuthError("Not authenticated. Run 'gmbackup-config auth' first.")

    return authenticate_loopback_flow(load_client_config(defaults))
