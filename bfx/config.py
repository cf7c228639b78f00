"""
Credential discovery and persistence for the command-line tool.

The library never reads credentials itself; the CLI resolves them here and
passes them to ``BitfinexClient``. Lookup order:

1. ``API_KEY`` / ``API_SECRET`` environment variables
2. ``.bfx_cli.env`` in the current directory
3. ``.bfx_cli.env`` in the home directory
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import dotenv_values

logger = logging.getLogger(__name__)

ENV_FILE_NAME = ".bfx_cli.env"
API_KEY_VAR = "API_KEY"
API_SECRET_VAR = "API_SECRET"


@dataclass(frozen=True)
class Credentials:
    api_key: str
    api_secret: str

    def __repr__(self) -> str:
        return f"Credentials(api_key={self.api_key!r}, api_secret='***')"


def resolve_env_path(
    cwd: Optional[Path] = None, home: Optional[Path] = None
) -> Optional[Path]:
    """
    Find the credentials file.

    Args:
        cwd: Directory searched first (defaults to the current directory)
        home: Directory searched second (defaults to the user's home)

    Returns:
        Path of the first existing file, or None
    """
    cwd = cwd or Path.cwd()
    home = home or Path.home()

    for directory in (cwd, home):
        path = directory / ENV_FILE_NAME
        if path.is_file():
            return path
    return None


def default_env_path(home: Optional[Path] = None) -> Path:
    return (home or Path.home()) / ENV_FILE_NAME


def load_credentials(
    environ: Optional[Mapping[str, str]] = None,
    env_path: Optional[Path] = None,
) -> Optional[Credentials]:
    """
    Load API credentials from the environment or the credentials file.

    Args:
        environ: Environment mapping (defaults to ``os.environ``)
        env_path: Credentials file to read (defaults to ``resolve_env_path()``)

    Returns:
        Credentials, or None if neither source has both values
    """
    environ = os.environ if environ is None else environ

    api_key = environ.get(API_KEY_VAR)
    api_secret = environ.get(API_SECRET_VAR)
    if api_key and api_secret:
        logger.debug("Using credentials from environment variables")
        return Credentials(api_key, api_secret)

    env_path = env_path or resolve_env_path()
    if env_path is None or not env_path.is_file():
        return None

    values = dotenv_values(env_path)
    api_key = (values.get(API_KEY_VAR) or "").strip()
    api_secret = (values.get(API_SECRET_VAR) or "").strip()
    if not (api_key and api_secret):
        logger.warning(f"{env_path} does not define both {API_KEY_VAR} and {API_SECRET_VAR}")
        return None

    logger.debug(f"Using credentials from {env_path}")
    return Credentials(api_key, api_secret)


def save_credentials(credentials: Credentials, env_path: Optional[Path] = None) -> Path:
    """
    Write credentials to the credentials file, readable by the owner only.

    Args:
        credentials: Credentials to store
        env_path: Destination (defaults to ``~/.bfx_cli.env``)

    Returns:
        Path written
    """
    env_path = env_path or default_env_path()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    env_path.write_text(
        f"{API_KEY_VAR}={credentials.api_key}\n{API_SECRET_VAR}={credentials.api_secret}\n"
    )
    os.chmod(env_path, 0o600)

    logger.info(f"Credentials saved to {env_path}")
    return env_path
