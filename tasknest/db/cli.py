from __future__ import annotations

import argparse
from collections.abc import Callable, Sequence

from tasknest.db.bootstrap import initialize_database
from tasknest.db.migrations import upgrade_to_head


def _run_init(args: argparse.Namespace) -> str:
    initialize_database(database_url=args.database_url, seed=not args.skip_seed)
    return "Database initialized."


def _run_migrate(args: argparse.Namespace) -> str:
    upgrade_to_head(args.database_url)
    return "Database migrations applied."


def build_parser() -> argparse.ArgumentParser:
    target = argparse.ArgumentParser(add_help=False)
    target.add_argument(
        "--database-url",
        default=None,
        help="Override DATABASE_URL for this command.",
    )

    parser = argparse.ArgumentParser(
        prog="tasknest-db",
        description="Create, migrate and seed the Tasknest database.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    init_parser = commands.add_parser(
        "init",
        parents=[target],
        help="Migrate to head and seed the demo user with its folders.",
    )
    init_parser.add_argument("--skip-seed", action="store_true")
    init_parser.set_defaults(handler=_run_init)

    migrate_parser = commands.add_parser(
        "migrate",
        parents=[target],
        help="Migrate to head without touching data.",
    )
    migrate_parser.set_defaults(handler=_run_migrate)

    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    handler: Callable[[argparse.Namespace], str] = args.handler
    print(handler(args))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
