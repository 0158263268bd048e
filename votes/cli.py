"""
Vote Tally CLI

Usage:
    python -m votes results
    python -m votes submit nudged mental-health
    python -m votes import backup1.csv backup2.csv
    python -m votes export out.csv
    python -m votes refresh
    python -m votes clear
"""

from __future__ import annotations
from pathlib import Path
from typing import List, Optional
import argparse
import sys

from .contracts import Variant
from .service import VoteService, create_service
from .sources.files import export_file


def _print_results(service: VoteService) -> None:
    table = service.tally()
    totals = table.totals
    print(f"Totals: Neutral {totals[Variant.NEUTRAL]} · Nudged {totals[Variant.NUDGED]}")
    print("\n| Topic | Neutral | Nudged |")
    print("| :--- | ---: | ---: |")
    for row in table.rows():
        print(f"| {row.title} | {row.count(Variant.NEUTRAL)} | {row.count(Variant.NUDGED)} |")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="votes", description="Reconcile and tally votes.")
    parser.add_argument("--store-dir", default=None, help="Directory holding the local vote slots")
    parser.add_argument("--endpoint", default=None, help="Remote collection endpoint URL")
    parser.add_argument("--config", default=None, help="JSON settings file")
    parser.add_argument("--remote", action="store_true", help="Also pull from the endpoint first")

    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("results", help="Print the tally")

    submit = sub.add_parser("submit", help="Record a vote")
    submit.add_argument("variant", choices=[v.value for v in Variant])
    submit.add_argument("choice")
    submit.add_argument("--user-agent", default="")

    imp = sub.add_parser("import", help="Merge exported tables")
    imp.add_argument("files", nargs="+", type=Path)

    exp = sub.add_parser("export", help="Write the merged table")
    exp.add_argument("output", type=Path)

    sub.add_parser("refresh", help="Pull from the remote endpoint")
    sub.add_parser("clear", help="Clear local votes")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    service = create_service(
        store_dir=args.store_dir,
        endpoint=args.endpoint,
        config_path=args.config
    )

    if args.remote or args.command == "refresh":
        result = service.refresh_remote()
        if not result.success:
            print(f"[!] Remote: {result.status.value} ({result.error_message})", file=sys.stderr)

    if args.command == "results":
        _print_results(service)
    elif args.command == "submit":
        service.submit(args.variant, args.choice, user_agent=args.user_agent)
        print(f"[*] Recorded {args.choice} ({args.variant})")
    elif args.command == "import":
        added = service.import_files(args.files)
        print(f"[*] Imported {added} new votes ({len(service.votes)} total)")
        _print_results(service)
    elif args.command == "export":
        path = export_file(service.votes, args.output)
        print(f"[*] Wrote {len(service.votes)} votes to {path}")
    elif args.command == "refresh":
        _print_results(service)
    elif args.command == "clear":
        service.clear()
        print("[*] Cleared local votes")
    return 0


if __name__ == "__main__":
    sys.exit(main())
