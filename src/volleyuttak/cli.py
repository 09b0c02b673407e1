"""Command-line interface for serving and inspecting the tryout roster."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Sequence

import httpx
import uvicorn

from volleyuttak.config import Settings
from volleyuttak.ingest import load_feed
from volleyuttak.models import Player
from volleyuttak.persistence import SelectionPersistence, SqliteStorage
from volleyuttak.pool import export_players_to_csv


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Volleyball tryout roster tool")
    parser.add_argument("--log-level", default="INFO", help="Logging level (e.g., DEBUG, INFO)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    serve = subparsers.add_parser("serve", help="Run the web app with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Interface to bind")
    serve.add_argument("--port", type=int, default=8000, help="Port to bind")
    serve.add_argument("--reload", action="store_true", help="Reload on code changes")

    fetch = subparsers.add_parser("fetch", help="Print the registration feed as JSON")
    fetch.add_argument("--output", type=Path, default=None, help="Write JSON here instead of stdout")

    export = subparsers.add_parser("export", help="Write the spreadsheet export for a stored selection")
    export.add_argument("user", help="User whose saved selection is exported")
    export.add_argument("--output", type=Path, default=None, help="Output CSV path (stdout when omitted)")
    export.add_argument("--db", type=Path, default=None, help="Override the SQLite database path")

    refresh = subparsers.add_parser("refresh", help="Ask a running server to reload the feed")
    refresh.add_argument("--url", default="http://127.0.0.1:8000", help="Base URL of the server")
    refresh.add_argument("--secret", default=None, help="Revalidation secret (defaults to REVALIDATION_SECRET)")

    return parser.parse_args(argv)


def _serve(args: argparse.Namespace) -> None:
    uvicorn.run(
        "volleyuttak.api:create_app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        factory=True,
        log_level=args.log_level.lower(),
    )


def _fetch(settings: Settings, args: argparse.Namespace) -> None:
    feed = load_feed(settings)
    payload = {
        "source": feed.source,
        "fetched_at": feed.fetched_at.isoformat(),
        "message": feed.message,
        "total_registrations": feed.total_registrations,
        "players": [player.model_dump() for player in feed.players],
    }
    text = json.dumps(payload, indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(text, encoding="utf-8")
        print(f"Saved {feed.total_registrations} registrations to {args.output}")
    else:
        print(text)


def _export(settings: Settings, args: argparse.Namespace) -> None:
    feed = load_feed(settings)
    lookup = {}
    for player in feed.players:
        lookup.setdefault(player.name, player)

    storage = SqliteStorage(args.db or settings.db_path)
    snapshot = SelectionPersistence(storage, namespace=args.user).load(lookup.get)
    players = [
        lookup.get(name) or Player(name=name)
        for names in snapshot.selection.values()
        for name in names
    ]
    if not players:
        raise SystemExit(f"no saved selection for {args.user}")

    csv_text = export_players_to_csv(players, feed_sheet=settings.sheet_title)
    if args.output:
        with args.output.open("w", newline="", encoding="utf-8") as f:
            f.write(csv_text)
        print(f"Exported {len(players)} players to {args.output}")
    else:
        print(csv_text, end="")


def _refresh(settings: Settings, args: argparse.Namespace) -> None:
    secret = args.secret or settings.revalidation_secret
    headers = {"Authorization": f"Bearer {secret}"} if secret else {}
    with httpx.Client(base_url=args.url) as client:
        resp = client.post("/api/revalidate-dashboard", headers=headers)
        if resp.status_code == 401:
            raise SystemExit("refresh rejected: wrong or missing revalidation secret")
        resp.raise_for_status()
        print(json.dumps(resp.json(), indent=2))


def main(argv: Sequence[str] | None = None) -> None:
    args = _parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.command == "serve":
        _serve(args)
        return

    settings = Settings.from_env()
    if args.command == "fetch":
        _fetch(settings, args)
    elif args.command == "export":
        _export(settings, args)
    elif args.command == "refresh":
        _refresh(settings, args)


if __name__ == "__main__":
    main()
