"""OAuth2 credentials for the Google Sheets API."""

from pathlib import Path
from typing import Sequence

import logfire
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from text_search.constants import OAUTH2_CALLBACK_PORT
from text_search.exceptions import InvalidInputError


def get_credentials(
    credentials_path: str | None,
    token_path: str | None,
    scopes: Sequence[str],
    callback_port: int = OAUTH2_CALLBACK_PORT,
    interactive: bool = False,
) -> Credentials:
    """Get or create OAuth2 credentials.

    Reuses the token stored in `token_path`, refreshing it when expired.
    Without a usable token, runs the consent flow on a local callback
    server (only when `interactive`) and stores the new token.

    Args:
        credentials_path: JSON file with the OAuth2 client credentials
        token_path: File where the token is found or stored
        scopes: API scopes requested
        callback_port: Local port for the consent callback
        interactive: Allow prompting the user for consent

    Raises:
        InvalidInputError: If the credentials file is not set or no usable
            token exists and `interactive` is false
    """
    if not credentials_path:
        raise InvalidInputError("Path to credentials file not set!")

    creds: Credentials | None = None
    if token_path and Path(token_path).exists():
        logfire.debug("Reusing the OAuth2 token", token_path=token_path)
        creds = Credentials.from_authorized_user_file(token_path, list(scopes))

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        logfire.info("Refreshing the OAuth2 token", token_path=token_path)
        creds.refresh(Request())
    elif interactive:
        logfire.info("No previous OAuth2 token found, requesting consent")
        flow = InstalledAppFlow.from_client_secrets_file(credentials_path, list(scopes))
        creds = flow.run_local_server(port=callback_port, open_browser=False)
    else:
        raise InvalidInputError(
            f"No valid OAuth2 token found in {token_path}. Run `text-search authorize` first."
        )

    if token_path:
        Path(token_path).write_text(creds.to_json(), encoding="utf-8")
        logfire.info("OAuth2 token stored", token_path=token_path)
    return creds
