"""
config.py
---------
Loads and exposes configuration for the Power BI session tools.

Every value has a default that matches a stock Power BI Desktop install, so
a bare machine needs no `.env` at all.  Override any of them through the
environment (or the project-root `.env`, loaded by the CLI on startup).
"""

# std modules
from dataclasses import dataclass
from pathlib import Path

# universal imports
from utils.config import env_or_default

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_PROCESS_NAME = "PBIDesktop.exe"
DEFAULT_TITLE_SUFFIX = " - Power BI Desktop"

# The ADOMD client rejects bracketed/raw loopback literals such as "::1"
# as a host, so sessions are always addressed through this name.
DEFAULT_ENGINE_HOST = "localhost"

DEFAULT_ADOMD_DIR = r"C:\Program Files\Microsoft.NET\ADOMD.NET\160"

# ---------------------------------------------------------------------------
# Config dataclass  (frozen = immutable after construction)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Config:
    # Process scanning
    process_name: str      # executable name of the desktop application
    title_suffix: str      # window-title decoration stripped from session titles

    # Engine addressing
    engine_host: str       # hostname literal used in the data source

    # Client library
    adomd_dir: Path        # directory holding Microsoft.AnalysisServices.AdomdClient.dll


def load_var() -> Config:
    return Config(
        process_name=env_or_default("PBI_PROCESS_NAME", DEFAULT_PROCESS_NAME),
        title_suffix=env_or_default("PBI_TITLE_SUFFIX", DEFAULT_TITLE_SUFFIX),
        engine_host=env_or_default("PBI_ENGINE_HOST", DEFAULT_ENGINE_HOST),
        adomd_dir=Path(env_or_default("ADOMD_CLIENT_DIR", DEFAULT_ADOMD_DIR)),
    )
