"""Command line entrypoint: compare translation keys used in code with the remote store.

Usage examples:
  python -m cli.sync --dir ./app
  python -m cli.sync --dir ./app --usages scan.json --format json
  python -m cli.sync --dir ./app --check unused --verbose --review-dynamic

Exit codes: 0 on success, 1 when ``--strict`` finds missing keys or a failed
invariant, 2 for unusable input (bad config or usage file).
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import random
import sys

from config import settings
from config.project import ProjectConfigError
from parsing.errors import UsageRecordError
from reporting.render import CHECK_CHOICES, build_json_payload, render_text
from reporting.verify import verify_unused_keys
from services.sync import SyncOptions, run_sync

_logger = logging.getLogger("keysync")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="keysync", description="Compare local translation keys with the remote store"
    )
    p.add_argument("--dir", default=".", help="Project root to scan (default: current directory)")
    p.add_argument("--usages", metavar="FILE", help="Scanner output (JSON / JSONL) instead of scanning")
    p.add_argument("--format", choices=("text", "json"), default="text", help="Output format")
    p.add_argument("--check", choices=CHECK_CHOICES, default="both", help="Which side to report")
    p.add_argument("--summary", action="store_true", help="Only print coverage figures")
    p.add_argument("--locale", help="Compare against this locale instead of the source locale")
    p.add_argument("--workspace", help="Override workspaceId from the project config")
    p.add_argument("--project", help="Override projectSlug from the project config")
    p.add_argument("--cdn-url", help="Override the CDN base URL")
    p.add_argument(
        "--review-dynamic",
        action="store_true",
        help="Report keys reached only through dynamic patterns for review instead of counting them as used",
    )
    p.add_argument("--no-cache", action="store_true", help="Disable the offline file cache")
    p.add_argument("--strict", action="store_true", help="Exit non-zero on missing keys or failed invariants")
    p.add_argument(
        "--seed",
        type=int,
        default=settings.VERIFY_SEED,
        help="Seed for the unused-key verification sample (default: %(default)s)",
    )
    p.add_argument("--verbose", "-v", action="store_true", help="Debug logging and invariant audit")
    return p


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose or os.environ.get("DEBUG") else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", stream=sys.stderr)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    options = SyncOptions(
        root_dir=args.dir,
        usages_path=args.usages,
        locale=args.locale,
        review_dynamic=args.review_dynamic,
        workspace_id=args.workspace,
        project_slug=args.project,
        cdn_base_url=args.cdn_url,
        offline_cache=not args.no_cache,
    )
    try:
        outcome = run_sync(options)
    except (ProjectConfigError, UsageRecordError, OSError, ValueError) as e:
        _logger.error("%s", e)
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.format == "json":
        print(json.dumps(build_json_payload(outcome), indent=2))
    else:
        for warning in outcome.warnings:
            print(f"warning: {warning}", file=sys.stderr)
        verification = None
        if args.verbose and outcome.report is not None:
            verification = verify_unused_keys(
                outcome.report.unused,
                args.dir,
                sample_size=settings.VERIFY_SAMPLE_SIZE,
                rng=random.Random(args.seed),
            )
        print(
            render_text(
                outcome,
                check=args.check,
                summary=args.summary,
                verbose=args.verbose or bool(os.environ.get("DEBUG")),
                verification=verification,
            )
        )

    report = outcome.report
    if report is not None and not report.invariants.ok:
        _logger.error(
            "Invariant check failed: local=%s remote=%s",
            report.invariants.local,
            report.invariants.remote,
        )
        if args.strict:
            return 1
    if args.strict and report is not None and report.missing_count:
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
