"""
CLI entry point for the cohort crawler. Wires the pipeline: fetch pulls -> fetch profiles -> fetch grades -> build app-data.json
"""

import argparse
import logging
import os
import sys
import webbrowser
from datetime import datetime, timezone

from ingest.errors import FetchError
from ingest.github import GitHubClient
from ingest.grading import GradingClient
from pipeline import generate_pulls, generate_profiles, generate_assignment_results, generate_app_data
from report.renderer import render
from settings import load_settings
from storage.cache import Cache
from storage.datadir import DataDir, read_json
from storage.retry import configure_retry

REPORT_EXTENSIONS = {"html": "html", "md": "md", "csv": "csv", "json": "json"}


def _configure_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _resolve_tokens(args):
    """Resolve tokens from CLI args or environment variables and attach them to args (CLI wins)."""
    args.github_token = args.github_token or os.getenv('GITHUB_TOKEN') or ''
    args.grading_token = args.grading_token or os.getenv('GRADING_TOKEN') or ''
    if not args.github_token and not args.skip_pulls:
        logging.getLogger(__name__).warning("No GitHub token (--github_token or GITHUB_TOKEN); using unauthenticated requests")


def _clear_cache(path: str, force: bool):
    if not force:
        confirm = input(f"Are you sure you want to clear the cache at {path}? This cannot be undone. [y/N]: ")
        if confirm.strip().lower() not in ("y", "yes"):
            print("Aborted cache clear.")
            return
    with Cache(path) as cache:
        removed = cache.clear()
    print(f"Cleared {removed} cached response(s) from {path}")


def _open_file_in_browser(path: str):
    """Open a file URL in the system default web browser."""
    webbrowser.open("file://" + os.path.abspath(path))


def _write_report_file(path: str, content: str, open_html: bool = False) -> str:
    out_dir = os.path.dirname(path)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    # newline='' keeps csv rows intact on Windows
    with open(path, 'w', encoding='utf-8', newline='') as fh:
        fh.write(content)
    print(f"Wrote report to {path}")
    if open_html:
        _open_file_in_browser(path)
    return path


def write_report(snapshot: dict, args, organization: str) -> str:
    """Render the ranked leaderboard from a snapshot and write it to --out-file (or a timestamped default)."""
    fmt = args.report.lower()
    ext = REPORT_EXTENSIONS[fmt]
    now = datetime.now(timezone.utc)
    content = render(snapshot.get('users') or {}, fmt=fmt, generated_at=now.isoformat(), scope=organization)
    out_path = args.out_file.strip() or f"leaderboard_{now.strftime('%Y%m%dT%H%M%SZ')}.{ext}"
    return _write_report_file(out_path, content, open_html=(args.open and fmt == 'html'))


def run(args, settings, cache) -> dict:
    """Run the selected pipeline steps. Returns the snapshot (built now, or read from disk with --skip-build)."""
    data = DataDir(settings.data_dir)
    github = GitHubClient(
        args.github_token, settings.organization, base_url=settings.github_base_url, cache=cache,
        max_age=args.cache_max_age, refresh=args.refresh,
    )

    if not args.skip_pulls:
        written = generate_pulls(settings, github, data, refresh=args.refresh)
        print(f"Fetched pulls for {len(written)} repositor{'y' if len(written) == 1 else 'ies'}")
    if not args.skip_profiles:
        if generate_profiles(settings, github, data, refresh=args.refresh):
            print(f"Wrote {data.profiles_path}")
    if not args.skip_assignments:
        grading = GradingClient(settings.require_grading_url(), token=args.grading_token)
        count = generate_assignment_results(grading, data)
        print(f"Wrote {count} assignment result(s) to {data.assignments_path}")
    if args.skip_build:
        return read_json(data.app_data_path) if args.report else {}

    snapshot = generate_app_data(settings, data)
    print(f"Wrote {data.app_data_path} ({len(snapshot['users'])} users)")
    return snapshot


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Cohort crawler: merge pull requests, profiles and grading results into app-data.json")
    parser.add_argument("--config", type=str, default=None, help="Path to crawler YAML config (default: config/crawler.yaml)")
    parser.add_argument("--data-dir", type=str, default=None, help="Data directory (overrides config and CRAWLER_DATA_DIR)")
    parser.add_argument("--github_token", type=str, help="GitHub API token (or set GITHUB_TOKEN env var)")
    parser.add_argument("--grading_token", type=str, help="Grading backend token (or set GRADING_TOKEN env var)")
    parser.add_argument("--skip-pulls", action="store_true", help="Do not fetch pull requests")
    parser.add_argument("--skip-profiles", action="store_true", help="Do not fetch GitHub profiles")
    parser.add_argument("--skip-assignments", action="store_true", help="Do not fetch assignment results")
    parser.add_argument("--skip-build", action="store_true", help="Do not rebuild app-data.json")
    parser.add_argument("--refresh", action="store_true", help="Refetch pulls and profiles even if their files or cached responses already exist")
    parser.add_argument("--report", type=str, choices=sorted(REPORT_EXTENSIONS), default=None, help="Also render the ranked leaderboard in this format")
    parser.add_argument("--out-file", type=str, default="", help="Leaderboard output path. If omitted a default name will be used")
    parser.add_argument("--open", action="store_true", help="Open the generated HTML leaderboard in the default browser")
    parser.add_argument("--cache", type=str, default="", help="Path to SQLite response cache (optional)")
    parser.add_argument("--cache-max-age", type=float, default=None, help="Refetch cached GitHub responses older than this many seconds")
    parser.add_argument("--cache-clear", action="store_true", help="Clear the response cache and exit (uses --cache or crawler-cache.db)")
    parser.add_argument("--force", action="store_true", help="Do not ask for confirmation (with --cache-clear)")
    # retry/backoff knobs; CRAWLER_MAX_RETRIES, CRAWLER_BACKOFF_BASE, CRAWLER_BACKOFF_JITTER, CRAWLER_MAX_BACKOFF set the defaults
    parser.add_argument("--max-retries", type=int, default=None, help="Maximum attempts per HTTP request")
    parser.add_argument("--backoff-base", type=float, default=None, help="Base backoff seconds")
    parser.add_argument("--backoff-jitter", type=float, default=None, help="Jitter seconds added to backoff")
    parser.add_argument("--max-backoff", type=float, default=None, help="Maximum backoff cap in seconds")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    if args.cache_clear:
        _clear_cache(args.cache or "crawler-cache.db", args.force)
        return

    configure_retry(max_retries=args.max_retries, backoff_base=args.backoff_base, backoff_jitter=args.backoff_jitter, max_backoff=args.max_backoff)
    try:
        settings = load_settings(args.config, data_dir=args.data_dir)
    except ValueError as ex:
        parser.error(str(ex))
    _resolve_tokens(args)

    cache = Cache(args.cache) if args.cache else None
    try:
        snapshot = run(args, settings, cache)
        if args.report:
            write_report(snapshot, args, settings.organization)
    except (FetchError, FileNotFoundError, ValueError) as ex:
        print(f"Error: {ex}", file=sys.stderr)
        sys.exit(1)
    finally:
        if cache:
            cache.close()


if __name__ == "__main__":
    main()
