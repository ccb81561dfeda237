"""
Fillmore command-line interface.

    fillmore generate --template testdata/testdata_template.json --db-url sqlite:///demo.db
    fillmore generate --template t.json --output out.json --non-interactive --choice 1 --seed 7
    fillmore tables --db-type sqlite --db-file demo.db
    fillmore serve --port 8000

Exit codes: 0 success, 1 fatal error (connection, template, configuration).
"""
import argparse
import logging
import sys
from typing import Optional, Sequence

from config import settings
from core.db_connector import SchemaIntrospector
from core.disambiguation import AutoSelectOperator, ConsoleOperator
from core.errors import TemplateError
from core.logging_config import setup_logging
from core.orchestrator import TemplateOrchestrator
from integrations.factory import create_suggestion_service
from models.connection import ConnectionRequest

logger = logging.getLogger("fillmore")

EXIT_SUCCESS = 0
EXIT_FAILURE = 1


def _add_connection_args(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("database (defaults come from the environment / .env)")
    g.add_argument("--db-url", help="Full SQLAlchemy URL; overrides the fields below")
    g.add_argument("--db-type", choices=["sqlite", "postgresql", "mysql", "mssql"])
    g.add_argument("--db-file", help="SQLite database file")
    g.add_argument("--db-host")
    g.add_argument("--db-port", type=int)
    g.add_argument("--db-name")
    g.add_argument("--db-user")
    g.add_argument("--db-password")
    g.add_argument("--db-schema")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fillmore",
        description="Fill API test-data templates with values drawn from a live database schema.",
    )
    parser.add_argument("--log-level", default=settings.LOG_LEVEL, help="DEBUG, INFO, WARNING, ERROR")
    sub = parser.add_subparsers(dest="command", required=True)

    gen = sub.add_parser("generate", help="Fill the null placeholders of a template")
    gen.add_argument("--template", default=settings.TEMPLATE_PATH, help="Template file (default: %(default)s)")
    gen.add_argument("--output", default=settings.OUTPUT_PATH or None, help="Output file (default: overwrite the template)")
    gen.add_argument("--seed", type=int, default=settings.RANDOM_SEED, help="Seed for reproducible output")
    gen.add_argument("--llm-provider", default=None, help="Suggestion service: ollama, openai, or none")
    gen.add_argument("--non-interactive", action="store_true", help="Answer every disambiguation menu automatically")
    gen.add_argument("--choice", type=int, default=1, help="Menu entry picked with --non-interactive (default: 1)")
    _add_connection_args(gen)

    tables = sub.add_parser("tables", help="List tables and their foreign-key neighbours")
    _add_connection_args(tables)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.API_HOST)
    serve.add_argument("--port", type=int, default=settings.API_PORT)
    serve.add_argument("--reload", action="store_true")
    return parser


def connection_from_args(args: argparse.Namespace) -> ConnectionRequest:
    """Settings first, then any --db-* flag on top."""
    base = ConnectionRequest.from_settings(settings)
    overrides = {
        "url": args.db_url,
        "db_type": args.db_type,
        "file_path": args.db_file,
        "host": args.db_host,
        "port": args.db_port,
        "database": args.db_name,
        "username": args.db_user,
        "password": args.db_password,
        "db_schema": args.db_schema,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    if args.db_type and not args.db_url:
        overrides["url"] = None   # explicit fields beat DATABASE_URL
    return base.model_copy(update=overrides)


def cmd_generate(args: argparse.Namespace) -> int:
    service = create_suggestion_service(args.llm_provider)
    operator = AutoSelectOperator(args.choice) if args.non_interactive else ConsoleOperator()

    with SchemaIntrospector.from_request(connection_from_args(args)) as introspector:
        orchestrator = TemplateOrchestrator(
            introspector,
            service=service,
            operator=operator,
            seed=args.seed,
            null_probability=settings.NULL_PROBABILITY,
            context_limit=settings.SCHEMA_CONTEXT_TABLES,
        )
        summary = orchestrator.generate(args.template, args.output)

    for r in summary.results:
        mark = "✓" if r.status == "success" else "✗"
        detail = ", ".join(r.tables) if r.status == "success" else r.error
        print(f"{mark} {r.endpoint}: {detail}")
    print(f"\nFilled {summary.endpoints_filled}/{summary.endpoints_total} endpoints in {summary.duration_seconds:.2f}s")
    return EXIT_SUCCESS


def cmd_tables(args: argparse.Namespace) -> int:
    with SchemaIntrospector.from_request(connection_from_args(args)) as introspector:
        for name in introspector.list_tables():
            related = introspector.find_related_tables(name)
            print(f"{name}" + (f"  → {', '.join(related)}" if related else ""))
    return EXIT_SUCCESS


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn
    uvicorn.run("main:app", host=args.host, port=args.port, reload=args.reload)
    return EXIT_SUCCESS


COMMANDS = {
    "generate": cmd_generate,
    "tables": cmd_tables,
    "serve": cmd_serve,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    try:
        return COMMANDS[args.command](args)
    except (ValueError, TemplateError) as e:
        logger.error("%s", e)
        return EXIT_FAILURE
    except KeyboardInterrupt:
        logger.error("Interrupted")
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
