"""Shared-secret check for the admin endpoints."""

import hmac
import logging

from text_search.config import get_settings
from text_search.exceptions import AuthError
from text_search.logging_config import mask_secret

logger = logging.getLogger(__name__)


def check_auth(auth: str | None, endpoint: str, ip: str = "") -> None:
    """
    Validate the `auth` query parameter against the configured secret.

    An unset secret rejects every request.

    Raises:
        AuthError: If the secret is missing or does not match
    """
    secret = get_settings().auth_secret
    logger.info("%s called from %s (auth=%s)", endpoint, ip, mask_secret(auth))
    if not secret or not auth or not hmac.compare_digest(
        auth.encode("utf-8"), secret.encode("utf-8")
    ):
        logger.warning("Rejected %s request from %s", endpoint, ip)
        raise AuthError()
