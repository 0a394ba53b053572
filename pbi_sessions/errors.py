"""
errors.py
---------
Failure kinds raised by discovery, selection and dispatch.

Every error carries a human-readable message plus a `kind` string and an
`exit_code` so callers can branch on the failure without parsing text.
"""


class PbiSessionError(Exception):
    kind = "pbi_session_error"
    exit_code = 1


class NoSessionFound(PbiSessionError):
    kind = "no_session_found"
    exit_code = 3

    def __init__(self, title_filter=None):
        self.title_filter = title_filter
        if title_filter is None:
            message = "No Power BI Desktop sessions found"
        else:
            message = f"No Power BI Desktop session matches title filter '{title_filter}'"
        super().__init__(message)


class AmbiguousSession(PbiSessionError):
    kind = "ambiguous_session"
    exit_code = 4

    def __init__(self, title_filter, sessions):
        self.title_filter = title_filter
        self.sessions = list(sessions)

        lines = [
            f"  {s.id}  {s.title}  {s.data_source or '(not ready)'}"
            for s in self.sessions
        ]
        scope = "sessions found" if title_filter is None else f"sessions match title filter '{title_filter}'"
        message = (
            f"{len(self.sessions)} Power BI Desktop {scope}:\n"
            + "\n".join(lines)
            + "\nNarrow the title filter so only one session matches."
        )
        super().__init__(message)


class EngineConnectionError(PbiSessionError):
    kind = "connection_error"
    exit_code = 5

    def __init__(self, data_source, title, reason=""):
        self.data_source = data_source
        self.title = title
        message = f"Could not connect to '{data_source}' for session '{title}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class CommandError(PbiSessionError):
    kind = "command_error"
    exit_code = 6

    def __init__(self, command, reason=""):
        self.command = command
        message = f"Command failed: {command}"
        if reason:
            message += f"\n{reason}"
        super().__init__(message)


class ClientLibraryMissing(PbiSessionError):
    kind = "client_library_missing"
    exit_code = 7
