"""
process_scan.py
---------------
Snapshots the two OS tables session discovery works from.

`get_app_processes` returns every running process whose executable name
matches the desktop application, together with its main window title.
`get_loopback_connections` returns the established TCP self-connections
(local address == remote address) owned by a given set of pids; the
embedded analytics engine is reached through one of those.
"""

# std modules
from typing import Dict, Iterable, List

import psutil

# universal imports
from utils.config import logger, windows_host

# local modules
from pbi_sessions.models import ProcessRow, TcpRow


def get_window_titles() -> Dict[int, str]:
    """
    Map pid -> title of its main window (first visible, unowned top-level
    window with a non-empty caption).  Empty on hosts without Win32 windows.
    """
    if not windows_host():
        logger.warning("Not a Windows host; no application windows to inspect.")
        return {}

    import win32con
    import win32gui
    import win32process

    titles: Dict[int, str] = {}

    def _collect(hwnd, _):
        if not win32gui.IsWindowVisible(hwnd):
            return True
        if win32gui.GetWindow(hwnd, win32con.GW_OWNER):
            return True

        text = win32gui.GetWindowText(hwnd)
        if text:
            _, pid = win32process.GetWindowThreadProcessId(hwnd)
            titles.setdefault(pid, text)
        return True

    win32gui.EnumWindows(_collect, None)
    return titles


def get_app_processes(process_name: str) -> List[ProcessRow]:
    """
    Return every running process named `process_name` (case-insensitive) in
    OS enumeration order.  Processes without a main window get an empty
    `window_title`.

    Examples
    --------
    >>> get_app_processes("PBIDesktop.exe")
    [ProcessRow(pid=84096, name='PBIDesktop.exe', window_title='Fabrikam Processes - Power BI Desktop')]
    """
    wanted = process_name.casefold()
    matches: List[ProcessRow] = []

    for proc in psutil.process_iter(["pid", "name"]):
        try:
            name = proc.info["name"]
            if not name or name.casefold() != wanted:
                continue
            matches.append(ProcessRow(pid=proc.info["pid"], name=name, window_title=""))

        except (psutil.NoSuchProcess, psutil.AccessDenied):
            # Process vanished or we don't have permission; not a session either way
            continue

    if not matches:
        return matches

    titles = get_window_titles()
    return [
        ProcessRow(pid=row.pid, name=row.name, window_title=titles.get(row.pid, ""))
        for row in matches
    ]


def get_loopback_connections(pids: Iterable[int]) -> List[TcpRow]:
    """
    Return the ESTABLISHED TCP connections owned by `pids` whose local and
    remote addresses are the same host, in OS enumeration order.
    """
    owners = set(pids)
    if not owners:
        return []

    rows: List[TcpRow] = []
    for conn in psutil.net_connections(kind="tcp"):
        if conn.pid not in owners:
            continue
        if conn.status != psutil.CONN_ESTABLISHED:
            continue
        # Listening and half-open sockets have no remote end
        if not conn.laddr or not conn.raddr:
            continue
        if conn.laddr.ip != conn.raddr.ip:
            continue

        rows.append(TcpRow(
            owner=conn.pid,
            status=conn.status,
            local_address=conn.laddr.ip,
            remote_address=conn.raddr.ip,
            remote_port=conn.raddr.port,
        ))

    logger.debug(f"{len(rows)} loopback connection(s) owned by pids {sorted(owners)}")
    return rows
