import os
import logging
from pathlib import Path
import platform

# -------------------------------------------------
# Helpers
# -------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger("pbi_sessions")

def windows_host():
    if platform.system() == "Windows":
        return True
    else:
        return False

def set_verbose(verbose: bool) -> None:
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)

def env_or_default(name: str, default: str) -> str:
    """
    Fetch an optional environment variable, falling back to `default`
    when it is not set at all.  A variable that is set but blank is a
    configuration mistake and fails fast.
    """
    value = os.environ.get(name)
    if value is None:
        return default

    if not value.strip() or value.strip().lower() == "none":
        raise RuntimeError(
            f"Environment variable '{name}' is set but empty or None"
        )

    # not stripped: the leading space of " - Power BI Desktop" matters
    return value

def dir_exists(path: Path, name: str) -> None:
    """
    Check that a directory exists
    """
    if not path.exists():
        raise RuntimeError(
            f"{name} does not exist: {path}"
        )
    if not path.is_dir():
        raise RuntimeError(
            f"{name} is not a directory: {path}"
        )
