"""
resolver.py
-----------
Turns OS process / TCP snapshots into addressable Power BI sessions.

A Power BI Desktop window talks to its embedded Analysis Services engine
over a loopback connection on a private ephemeral port.  Joining the
application's processes to their established self-connections yields that
port, which is all a client needs to connect.

Sessions are recomputed on every call; nothing here keeps state.
"""

# std modules
from fnmatch import fnmatchcase
from typing import Dict, List, Optional, Sequence

import psutil

# universal imports
from utils.config import logger

# local modules
from pbi_sessions.config import Config, load_var
from pbi_sessions.errors import AmbiguousSession, NoSessionFound
from pbi_sessions.models import ProcessRow, Session, TcpRow
from pbi_sessions.process_scan import get_app_processes, get_loopback_connections

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def strip_title_suffix(raw_title: str, suffix: str) -> str:
    """'Fabrikam Processes - Power BI Desktop' -> 'Fabrikam Processes'"""
    if suffix and raw_title.endswith(suffix):
        return raw_title[: -len(suffix)]
    return raw_title


def build_data_source(host: str, port: int) -> str:
    return f"{host}:{port}"


def title_matches(title: str, pattern: str) -> bool:
    """Case-insensitive glob match: `*` any run, `?` any single character."""
    return fnmatchcase(title.casefold(), pattern.casefold())


def _unique_endpoints(connections: Sequence[TcpRow]) -> Dict[int, List[TcpRow]]:
    """
    Group loopback self-connections by owner, collapsing rows that repeat
    the same (owner, remote_address, remote_port) tuple.  Rows that are not
    ESTABLISHED or whose local and remote addresses differ are dropped.
    Order is preserved.
    """
    seen = set()
    by_owner: Dict[int, List[TcpRow]] = {}

    for row in connections:
        if row.status != psutil.CONN_ESTABLISHED:
            continue
        if row.local_address != row.remote_address:
            continue

        key = (row.owner, row.remote_address, row.remote_port)
        if key in seen:
            continue
        seen.add(key)
        by_owner.setdefault(row.owner, []).append(row)

    return by_owner

# ---------------------------------------------------------------------------
# Connection resolver
# ---------------------------------------------------------------------------

def resolve_sessions(
    processes: Sequence[ProcessRow],
    connections: Sequence[TcpRow],
    config: Config,
    title_filter: Optional[str] = None,
) -> List[Session]:
    """
    Join process rows to loopback TCP rows and build one Session per
    windowed application process.

    A process without a matching connection still yields a Session, with
    empty address/port; callers treat it as "not ready".  When a process
    owns more than one distinct self-connection the first one reported by
    the OS is used and a warning is logged.

    `title_filter=None` means no filtering.  Any string, including "",
    is applied as a glob pattern against the derived title.
    """
    wanted = config.process_name.casefold()
    by_owner = _unique_endpoints(connections)

    sessions: List[Session] = []
    for proc in processes:
        if proc.name.casefold() != wanted or not proc.window_title:
            continue

        title = strip_title_suffix(proc.window_title, config.title_suffix)
        endpoints = by_owner.get(proc.pid, [])

        if not endpoints:
            logger.debug(f"Process {proc.pid} ({title}) has no engine connection yet")
            sessions.append(Session(id=proc.pid, title=title))
            continue

        if len(endpoints) > 1:
            listed = ", ".join(f"{e.remote_address}:{e.remote_port}" for e in endpoints)
            logger.warning(
                f"Process {proc.pid} ({title}) has {len(endpoints)} loopback connections "
                f"({listed}); using the first"
            )

        endpoint = endpoints[0]
        sessions.append(Session(
            id=proc.pid,
            title=title,
            address=endpoint.remote_address,
            port=endpoint.remote_port,
            data_source=build_data_source(config.engine_host, endpoint.remote_port),
        ))

    if title_filter is not None:
        sessions = [s for s in sessions if title_matches(s.title, title_filter)]

    return sessions


def discover_sessions(title_filter: Optional[str] = None, config: Optional[Config] = None) -> List[Session]:
    """
    Snapshot the OS tables and return every discovered session, optionally
    narrowed by a title glob, in process enumeration order.

    Examples
    --------
    >>> discover_sessions("Fab*")
    [Session(id=84096, title='Fabrikam Processes', address='::1', port=51125, data_source='localhost:51125')]
    """
    config = config or load_var()

    processes = [p for p in get_app_processes(config.process_name) if p.window_title]
    connections = get_loopback_connections(p.pid for p in processes)

    sessions = resolve_sessions(processes, connections, config, title_filter)
    logger.debug(f"Discovered {len(sessions)} session(s) from {len(processes)} windowed process(es)")
    return sessions

# ---------------------------------------------------------------------------
# Single-session selector
# ---------------------------------------------------------------------------

def select_session(title_filter: Optional[str] = None, config: Optional[Config] = None) -> Session:
    """
    Return the one session matching `title_filter`.

    Raises NoSessionFound when nothing matches and AmbiguousSession (listing
    the candidates) when more than one does.
    """
    sessions = discover_sessions(title_filter, config)

    if not sessions:
        raise NoSessionFound(title_filter)
    if len(sessions) > 1:
        raise AmbiguousSession(title_filter, sessions)

    session = sessions[0]
    logger.debug(f"Selected session {session.id} ({session.title}) at {session.data_source or 'n/a'}")
    return session
