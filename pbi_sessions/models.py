"""
models.py
---------
Plain records passed between the scanner, resolver and dispatcher.
"""

# std modules
from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple


# ---------------------------------------------------------------------------
# OS snapshot rows
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ProcessRow:
    pid:          int
    name:         str
    window_title: str   # "" when the process has no visible main window


@dataclass(frozen=True)
class TcpRow:
    owner:          int
    status:         str
    local_address:  str
    remote_address: str
    remote_port:    int


# ---------------------------------------------------------------------------
# Discovery / query results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Session:
    id:          int
    title:       str
    address:     str = ""
    port:        Optional[int] = None
    data_source: str = ""

    @property
    def ready(self) -> bool:
        """False when no engine connection was found for the process."""
        return self.port is not None


@dataclass
class ResultSet:
    columns: List[str] = field(default_factory=list)
    rows:    List[Tuple[Any, ...]] = field(default_factory=list)

    def records(self) -> List[dict]:
        return [dict(zip(self.columns, row)) for row in self.rows]


@dataclass(frozen=True)
class TableInfo:
    name:        str
    description: str
