import logging
import os
from typing import Optional

import requests
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Ensure environment variables from .env are loaded when this module is imported.
load_dotenv()


def open_session(
    api_key: Optional[str] = None, access_token: Optional[str] = None
) -> requests.Session:
    """Open a requests session pre-configured for the hosted table API.

    Parameters
    ----------
    api_key : Optional[str], default: None
        Project API key sent as the ``apikey`` header. Falls back to
        ``GATCHACHA_API_KEY``.
    access_token : Optional[str], default: None
        Signed-in user's token sent as the bearer credential. Falls back to
        ``GATCHACHA_ACCESS_TOKEN`` and then to the API key itself, which is
        how anonymous requests authenticate.

    Returns
    -------
    requests.Session
        Session carrying the authentication headers.

    Raises
    ------
    RuntimeError
        If no API key is configured.
    """
    key = api_key or os.environ.get("GATCHACHA_API_KEY")
    if not key:
        raise RuntimeError("Environment variable 'GATCHACHA_API_KEY' is not set")
    token = access_token or os.environ.get("GATCHACHA_ACCESS_TOKEN") or key

    session = requests.Session()
    session.headers.update(
        {
            "apikey": key,
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
        }
    )
    # Never log the key or token values
    kind = "user" if token != key else "anonymous"
    logger.debug(f"Opened API session with {kind} credentials")
    return session
