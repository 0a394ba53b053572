"""
adomd_client.py
---------------
Narrow client seam in front of the Analysis Services engine.

The dispatcher only ever needs `open()`, `query(command)` and `close()`;
`EngineClient` names that contract so tests can hand in a fake.  The real
implementation, `AdomdClient`, drives ADOMD.NET through `pyadomd`.
"""

# std modules
import logging
import sys
from pathlib import Path
from typing import Protocol

# universal imports
from utils.config import dir_exists

# local modules
from pbi_sessions.errors import ClientLibraryMissing
from pbi_sessions.models import ResultSet


class EngineClient(Protocol):
    def open(self) -> None: ...

    def query(self, command: str) -> ResultSet: ...

    def close(self) -> None: ...


def connection_string(data_source: str) -> str:
    return f"Provider=MSOLAP;Data Source={data_source};"


def load_pyadomd(adomd_dir: Path):
    """
    Make the ADOMD.NET client assembly resolvable and import `pyadomd`.

    pyadomd loads Microsoft.AnalysisServices.AdomdClient through pythonnet
    at import time, so the directory holding that DLL has to be on sys.path
    first.  Any failure here means the client library is not usable.
    """
    try:
        dir_exists(adomd_dir, "ADOMD.NET client directory")
    except RuntimeError as e:
        raise ClientLibraryMissing(
            f"{e}. Install the ADOMD.NET client or set ADOMD_CLIENT_DIR."
        ) from e

    if str(adomd_dir) not in sys.path:
        sys.path.append(str(adomd_dir))

    try:
        from pyadomd import Pyadomd
    except Exception as e:
        raise ClientLibraryMissing(
            f"Could not load the ADOMD.NET client from {adomd_dir}: {e}"
        ) from e

    return Pyadomd


class AdomdClient:
    """
    One engine connection over ADOMD.NET.  Not reusable after `close()`.
    """
    def __init__(self, connection_string: str, adomd_dir: Path, logger=None):
        self.connection_string = connection_string
        self.adomd_dir = adomd_dir
        self.logger = logger or logging.getLogger(__name__)
        self._conn = None

    def open(self) -> None:
        pyadomd_cls = load_pyadomd(self.adomd_dir)
        self.logger.debug(f"Opening engine connection ({self.connection_string})")
        conn = pyadomd_cls(self.connection_string)
        conn.open()
        self._conn = conn

    def query(self, command: str) -> ResultSet:
        if self._conn is None:
            raise RuntimeError("query() called before open()")

        cursor = self._conn.cursor()
        try:
            cursor.execute(command)
            columns = [col.name for col in cursor.description]
            rows = [tuple(row) for row in cursor.fetchall()]
        finally:
            cursor.close()

        self.logger.debug(f"Query returned {len(rows)} row(s) x {len(columns)} column(s)")
        return ResultSet(columns=columns, rows=rows)

    def close(self) -> None:
        conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()
            self.logger.debug("Engine connection closed")


def adomd_factory(adomd_dir: Path, logger=None):
    """Return a `connection string -> EngineClient` factory bound to `adomd_dir`."""
    def _factory(conn_str: str) -> EngineClient:
        return AdomdClient(conn_str, adomd_dir, logger=logger)
    return _factory
