"""
query_builders.py
-----------------
Ready-made commands on top of the dispatcher.
"""

# std modules
from typing import List, Optional

# local modules
from pbi_sessions.config import Config
from pbi_sessions.dispatcher import ClientFactory, execute
from pbi_sessions.models import ResultSet, Session, TableInfo

TABLES_QUERY = "SELECT [Name], [Description], [IsHidden] FROM $SYSTEM.TMSCHEMA_TABLES"


def escape_table_name(name: str) -> str:
    """Double single quotes so `name` survives inside a '...' DAX reference."""
    return name.replace("'", "''")


def read_table_command(table_name: str) -> str:
    # unescaped: quote characters in table_name must already be doubled
    return f"EVALUATE ('{table_name}')"


def list_tables(
    session: Session,
    include_hidden: bool = False,
    client_factory: Optional[ClientFactory] = None,
    config: Optional[Config] = None,
) -> List[TableInfo]:
    """
    Return the model's tables as (name, description) rows.  Tables the
    engine flags as hidden are left out unless `include_hidden` is set.
    """
    result = execute(session, TABLES_QUERY, client_factory=client_factory, config=config)

    tables: List[TableInfo] = []
    for record in result.records():
        if record.get("IsHidden") and not include_hidden:
            continue
        tables.append(TableInfo(
            name=record.get("Name") or "",
            description=record.get("Description") or "",
        ))
    return tables


def read_table(
    session: Session,
    table_name: str,
    client_factory: Optional[ClientFactory] = None,
    config: Optional[Config] = None,
) -> ResultSet:
    return execute(session, read_table_command(table_name), client_factory=client_factory, config=config)
