from __future__ import annotations

import argparse
from pathlib import Path

from .breakdown import BreakdownService
from .completion import build_completer
from .config import Settings, configure_logging
from .db import StateDB, default_db_path
from .errors import MicrostepsError
from .exporting import export_json
from .rate_limit import RateLimiter
from .workspace import Workspace


DEFAULT_OUT_DIR = Path(__file__).resolve().parent / "out"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="microsteps",
        description="Microsteps: tiny-step task focus API with a calm chat companion",
    )
    parser.add_argument(
        "--db",
        default=None,
        help=f"SQLite database path (default: $MICROSTEPS_DB or {default_db_path()})",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="bind port")

    export_parser = subparsers.add_parser("export", help="write the JSON export")
    export_parser.add_argument(
        "--out-dir",
        default=str(DEFAULT_OUT_DIR),
        help="output directory, default microsteps/out",
    )

    subparsers.add_parser("wipe", help="delete all tasks, sessions and stats")

    breakdown_parser = subparsers.add_parser("breakdown", help="split a task title into micro-steps")
    breakdown_parser.add_argument("title", help="task title")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env(db_path=Path(args.db) if args.db else None)
    configure_logging(settings.log_level)

    if args.command == "serve":
        return _handle_serve(args, settings, parser)
    if args.command == "breakdown":
        return _handle_breakdown(args, settings)

    workspace = Workspace(db=StateDB(settings.db_path))
    if args.command == "export":
        return _handle_export(args, workspace)
    if args.command == "wipe":
        return _handle_wipe(workspace)

    parser.print_help()
    return 2


def _handle_serve(args: argparse.Namespace, settings: Settings, parser: argparse.ArgumentParser) -> int:
    if not 0 < args.port < 65536:
        parser.error("--port must be between 1 and 65535")

    import uvicorn

    from .api.app import create_app

    server = uvicorn.Server(
        uvicorn.Config(
            create_app(settings=settings),
            host=args.host,
            port=args.port,
            log_level=settings.log_level.lower(),
        )
    )
    server.run()
    return 0


def _handle_export(args: argparse.Namespace, workspace: Workspace) -> int:
    json_path = export_json(workspace, Path(args.out_dir))
    print(f"Export written: {json_path}")
    return 0


def _handle_wipe(workspace: Workspace) -> int:
    workspace.delete_all_data()
    print("All data deleted.")
    return 0


def _handle_breakdown(args: argparse.Namespace, settings: Settings) -> int:
    service = BreakdownService(
        limiter=RateLimiter(settings.breakdown_rate_limit, settings.rate_limit_window_seconds),
        completer=build_completer(settings, max_tokens=500, json_mode=True),
    )
    try:
        result = service.breakdown(args.title, client_id="cli")
    except MicrostepsError as exc:
        print(f"Error: {exc.message}")
        return 2

    for index, step in enumerate(result.steps, start=1):
        print(f"{index}. {step['text']} ({step['duration_min']} min)")
    if result.fallback:
        print("(template steps; no provider reply was used)")
    return 0
