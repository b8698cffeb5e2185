from __future__ import annotations

import argparse
import json
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from influence_cms.db.repo import EntityRepo, Repo
from influence_cms.entities import ENTITY_KINDS
from influence_cms.logging_conf import setup_logging
from influence_cms.settings import Settings

_KINDS = {kind.name: kind for kind in ENTITY_KINDS}

def _apply_cli_overrides(settings: Settings, args: argparse.Namespace) -> Settings:
    changes = {}
    if getattr(args, "db_url", None):
        changes["db_url"] = args.db_url
    if getattr(args, "site_root", None):
        changes["site_root"] = Path(args.site_root)
    return replace(settings, **changes) if changes else settings

def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="influence-cms")
    p.add_argument("--env-file", default=".env", help="Path to .env file (default: .env)")
    p.add_argument("--log-level", default=None, help="Logging level (INFO, DEBUG, ...)")
    p.add_argument("--db-url", default=None, help="Override DB_URL (e.g., sqlite:///influence.db)")
    p.add_argument("--site-root", default=None, help="Override SITE_ROOT")

    sub = p.add_subparsers(dest="cmd", required=True)

    sub.add_parser("init-db", help="Create tables and add missing columns")

    sub_list = sub.add_parser("list", help="Print all rows of one entity table as JSON")
    sub_list.add_argument("kind", choices=sorted(_KINDS))

    sub_del = sub.add_parser("delete", help="Delete one row by id")
    sub_del.add_argument("kind", choices=sorted(_KINDS))
    sub_del.add_argument("id", type=int)

    return p

def main(argv: list[str] | None = None) -> None:
    argv = argv if argv is not None else sys.argv[1:]
    parser = build_parser()
    args = parser.parse_args(argv)

    load_dotenv(args.env_file)
    setup_logging(args.log_level)

    settings = _apply_cli_overrides(Settings.from_env(), args)

    repo = Repo(settings=settings)
    repo.ensure_schema()
    try:
        if args.cmd == "init-db":
            print("DB schema is ready.")
            return

        entities = EntityRepo(db=repo, kind=_KINDS[args.kind])

        if args.cmd == "list":
            items = [e.model_dump() for e in entities.list()]
            print(json.dumps(items, ensure_ascii=False, indent=2))
            return

        if args.cmd == "delete":
            n = entities.delete(args.id)
            print(f"Deleted {n} row(s) from {args.kind}")
            return
    finally:
        repo.close()

    raise SystemExit(f"Unknown command: {args.cmd}")
