"""
dispatcher.py
-------------
Runs one command against one session's engine and hands back the table.

Each call opens its own connection, runs the command text exactly as
given and closes the connection before returning.  There is no pooling,
no retry and no timeout here; the client library owns timeouts.

Command text is NOT escaped.  Builders that splice names into DAX must
quote them first (see `query_builders.escape_table_name`).
"""

# std modules
from typing import Callable, Optional

# universal imports
from utils.config import logger

# local modules
from pbi_sessions.adomd_client import EngineClient, adomd_factory, connection_string
from pbi_sessions.config import Config, load_var
from pbi_sessions.errors import CommandError, EngineConnectionError, PbiSessionError
from pbi_sessions.models import ResultSet, Session

ClientFactory = Callable[[str], EngineClient]


def _close(client: EngineClient, session: Session) -> None:
    try:
        client.close()
    except Exception as e:
        # A failed close must not hide the outcome of the command itself
        logger.warning(f"Error closing connection to {session.data_source}: {e}")


def execute(
    session: Session,
    command: str,
    client_factory: Optional[ClientFactory] = None,
    config: Optional[Config] = None,
) -> ResultSet:
    """
    Execute `command` against `session` and return the first result table.

    Raises EngineConnectionError when the session is not ready or the
    connection cannot be opened, CommandError when the engine rejects the
    command, and ClientLibraryMissing when ADOMD.NET cannot be loaded.
    """
    if not session.ready:
        raise EngineConnectionError(
            session.data_source, session.title,
            "session has no engine port yet (is the report still loading?)",
        )

    if client_factory is None:
        client_factory = adomd_factory((config or load_var()).adomd_dir, logger=logger)

    client = client_factory(connection_string(session.data_source))

    try:
        client.open()
    except PbiSessionError:
        # ClientLibraryMissing is raised from open(); keep its kind
        raise
    except Exception as e:
        raise EngineConnectionError(session.data_source, session.title, str(e)) from e

    logger.debug(f"Connected to {session.data_source} ({session.title})")

    try:
        result = client.query(command)
    except PbiSessionError:
        # already classified, not a command failure
        raise
    except Exception as e:
        raise CommandError(command, str(e)) from e
    finally:
        _close(client, session)

    return result
