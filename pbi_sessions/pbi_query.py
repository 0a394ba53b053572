"""
pbi_query.py
------------
Entry point for the `pbi-query` command.

Commands
--------
list-sessions   Show every running Power BI Desktop session and its engine port.
list-tables     Show the tables of the one session matching --title.
read-table      Dump a table of the one session matching --title.
query           Run an arbitrary DAX / DMV command against that session.

Data is written to stdout (aligned text or CSV); logs and errors go to
stderr.  Exit code 0 on success, otherwise the failing error's exit_code.
"""

# std modules
import argparse
import csv
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from dotenv import load_dotenv

# universal modules
from utils.config import logger, set_verbose

# local modules
from pbi_sessions.config import load_var
from pbi_sessions.dispatcher import execute
from pbi_sessions.errors import PbiSessionError
from pbi_sessions.query_builders import escape_table_name, list_tables, read_table
from pbi_sessions.resolver import discover_sessions, select_session

# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def _cell(value) -> str:
    return "" if value is None else str(value)


def print_rows(columns: Sequence[str], rows: Sequence[Sequence], fmt: str = "table", out=None) -> None:
    out = out or sys.stdout

    if fmt == "csv":
        writer = csv.writer(out, lineterminator="\n")
        writer.writerow(columns)
        for row in rows:
            writer.writerow([_cell(v) for v in row])
        return

    text_rows = [[_cell(v) for v in row] for row in rows]
    widths = [len(c) for c in columns]
    for row in text_rows:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))

    def _line(values):
        return "  ".join(v.ljust(w) for v, w in zip(values, widths)).rstrip()

    out.write(_line(columns) + "\n")
    out.write(_line(["-" * w for w in widths]) + "\n")
    for row in text_rows:
        out.write(_line(row) + "\n")

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_list_sessions(args, config) -> None:
    sessions = discover_sessions(args.title, config)
    print_rows(
        ["Id", "Title", "Address", "Port", "DataSource"],
        [(s.id, s.title, s.address, s.port, s.data_source) for s in sessions],
        args.format,
    )


def cmd_list_tables(args, config) -> None:
    session = select_session(args.title, config)
    tables = list_tables(session, include_hidden=args.include_hidden, config=config)
    print_rows(["Name", "Description"], [(t.name, t.description) for t in tables], args.format)


def cmd_read_table(args, config) -> None:
    session = select_session(args.title, config)
    result = read_table(session, escape_table_name(args.table), config=config)
    print_rows(result.columns, result.rows, args.format)


def cmd_query(args, config) -> None:
    session = select_session(args.title, config)
    result = execute(session, args.command, config=config)
    print_rows(result.columns, result.rows, args.format)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pbi-query",
        description="Discover running Power BI Desktop sessions and query their models",
    )
    parser.add_argument("--format", choices=["table", "csv"], default="table",
                        help="Output format (default: table)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    sub = parser.add_subparsers(dest="cmd", required=True)

    p = sub.add_parser("list-sessions", help="List running Power BI Desktop sessions")
    p.add_argument("--title", help="Window title filter, '*' and '?' wildcards, case-insensitive")
    p.set_defaults(func=cmd_list_sessions)

    p = sub.add_parser("list-tables", help="List the tables of a session's model")
    p.add_argument("--title", help="Window title filter selecting exactly one session")
    p.add_argument("--include-hidden", action="store_true", help="Include tables hidden in the model")
    p.set_defaults(func=cmd_list_tables)

    p = sub.add_parser("read-table", help="Print every row of a table")
    p.add_argument("--table", required=True, help="Table name as shown in the model")
    p.add_argument("--title", help="Window title filter selecting exactly one session")
    p.set_defaults(func=cmd_read_table)

    p = sub.add_parser("query", help="Run a DAX or DMV command")
    p.add_argument("--command", required=True, help="Command text, sent verbatim")
    p.add_argument("--title", help="Window title filter selecting exactly one session")
    p.set_defaults(func=cmd_query)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_dotenv(Path(__file__).parent.parent / ".env", override=True)

    args = build_parser().parse_args(argv)
    set_verbose(args.verbose)

    try:
        config = load_var()
        args.func(args, config)
    except PbiSessionError as e:
        logger.debug(f"{args.cmd} failed ({e.kind})")
        print(str(e), file=sys.stderr)
        return e.exit_code
    except RuntimeError as e:
        # configuration problems from the environment helpers
        print(str(e), file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
