"""
memquery/cli.py

Command-line driver for the memquery engine.

Responsibilities:
- Load a datastore JSON document (schemas + rows).
- Load a workflow JSON document and attach the datastore under every cluster
  the workflow names.
- Run the workflow, whole or paged, and print each result as an aligned table.

Usage:
    memquery DATA.json PLAN.json [--page-size N] [--query-id ID] [--verbose]
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from .config import EngineConfig
from .connector import Connector
from .errors import MemQueryError, PlanError
from .plan import workflow_from_dict
from .result import QueryResult
from .storage.memory import InMemoryDatastore

logger = logging.getLogger(__name__)


def format_table(columns: list[str], rows: list[list[object]]) -> str:
    """
    Pretty-print rows as an aligned ASCII table.

    Args:
        columns: Column header list.
        rows: Row values list.

    Returns:
        A formatted string suitable for printing to console.
    """
    cols = [str(c) for c in columns]
    str_rows = [[("" if v is None else str(v)) for v in r] for r in rows]

    widths = [len(c) for c in cols]
    for r in str_rows:
        for i, cell in enumerate(r):
            widths[i] = max(widths[i], len(cell))

    def fmt_row(r: Iterable[str]) -> str:
        return " | ".join(cell.ljust(widths[i]) for i, cell in enumerate(r))

    sep = "-+-".join("-" * w for w in widths)

    out: list[str] = [fmt_row(cols), sep]
    for r in str_rows:
        out.append(fmt_row(r))
    return "\n".join(out)


def print_result(res: QueryResult) -> None:
    """Print one QueryResult (a whole result or one page)."""
    if res.query_id is not None:
        flag = " (last)" if res.last else ""
        print(f"-- page {res.page}{flag}")
    print(format_table(res.result_set.aliases, res.result_set.tuples()))
    print(f"({len(res.rows)} row(s))")
    if res.stats:
        print(f"stats: {res.stats}")


def _read_json(path: Path, what: str):
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise PlanError(f"{what} file not found: {path}") from e
    except json.JSONDecodeError as e:
        raise PlanError(f"Invalid JSON in {what} file {path}: {e}") from e


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="memquery", description="Run a logical workflow against a JSON datastore.")
    p.add_argument("data", type=Path, help="datastore JSON document")
    p.add_argument("plan", type=Path, help="workflow JSON document")
    p.add_argument("--page-size", type=int, default=None, help="deliver the result in pages of N rows")
    p.add_argument("--query-id", default="cli", help="query id stamped on pages")
    p.add_argument("--join-method", choices=["index", "scan"], default="index")
    p.add_argument("--lenient", action="store_true", help="leave missing output cells empty instead of failing")
    p.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return p


def run(args: argparse.Namespace) -> int:
    config = EngineConfig(join_method=args.join_method, strict_projection=not args.lenient)
    store = InMemoryDatastore.load(args.data)
    workflow = workflow_from_dict(_read_json(args.plan, "plan"))

    connector = Connector(config=config)
    for cluster in sorted({s.cluster for s in workflow.initial_steps}):
        connector.attach(cluster, store)

    engine = connector.query_engine()
    if args.page_size is None:
        print_result(engine.execute(workflow))
    else:
        engine.paged_execute(args.query_id, workflow, print_result, page_size=args.page_size)
    return 0


def main(argv: list[str] | None = None) -> int:
    """
    CLI entrypoint.

    Args:
        argv: Arguments without the program name (defaults to sys.argv[1:]).

    Returns:
        Exit code: 0 on success, 1 on an engine error, 2 on usage errors.
    """
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return int(e.code or 0)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        return run(args)
    except MemQueryError as e:
        print(f"error: {e}")
        return 1
