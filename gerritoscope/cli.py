"""Command-line entry point: fetch Gerrit activity and render reports."""

import argparse
import logging
import os
import sys
from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

from dotenv import load_dotenv

from .errors import GerritError, UnknownHostError
from .fetcher import HostFetcher
from .hosts import KNOWN_HOSTS, expand
from .models import ChangeQuery, ChangeStatus, ReviewerQuery
from .output import THEMES, OutputFormatter, render_markdown, render_svg
from .output.svg import DEFAULT_THEME
from .stats import DEFAULT_LEVEL_POLICY, LEVEL_POLICIES, compute, get_level_policy

# Reviews are fetched a little past the heatmap window
REVIEW_LOOKBACK = timedelta(weeks=54)


def configure_logging():
    """Configure logging (can be overridden by LOG_LEVEL environment variable)."""
    log_level = os.environ.get('LOG_LEVEL', 'INFO').upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format='%(asctime)s %(levelname)s: %(message)s',
        datefmt='%m/%d/%Y %I:%M:%S %p'
    )


def parse_date(value: str) -> date:
    """argparse type for ``YYYY-MM-DD`` values."""
    try:
        return datetime.strptime(value, '%Y-%m-%d').date()
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not YYYY-MM-DD") from None


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser; defaults come from the environment."""
    parser = argparse.ArgumentParser(
        prog='gerritoscope',
        description='Fetch Gerrit contribution stats and render a profile heatmap',
    )
    parser.add_argument(
        '--hosts', action='append',
        help=f"Gerrit host(s): short aliases ({', '.join(KNOWN_HOSTS)}), full URLs, "
             "or comma-separated lists. May be repeated. Defaults to GERRIT_HOSTS or 'chromium'.",
    )
    parser.add_argument(
        '--owner', default=os.environ.get('GERRIT_OWNER'),
        help='Account to query: email address, username, or self',
    )
    parser.add_argument(
        '--after', type=parse_date, default=os.environ.get('GERRIT_AFTER') or None,
        help='Only include changes submitted on or after this date (YYYY-MM-DD)',
    )
    parser.add_argument('--username', default=os.environ.get('GERRIT_USERNAME'),
                        help='HTTP Basic auth username (for private Gerrit instances)')
    parser.add_argument('--password', default=os.environ.get('GERRIT_PASSWORD'),
                        help='Gerrit HTTP password (paired with --username)')
    parser.add_argument('--output-md', help='Write a markdown report to this file')
    parser.add_argument('--output-svg', help='Write an SVG heatmap card to this file')
    parser.add_argument('--svg-theme', choices=list(THEMES), default=DEFAULT_THEME,
                        help='Colour theme for the SVG card')
    parser.add_argument('--svg-multi-color', action='store_true',
                        help='Colour each SVG week by its dominant host or project family')
    parser.add_argument('--skip-reviews', action='store_true',
                        help='Skip fetching code review activity')
    parser.add_argument('--level-policy', choices=sorted(LEVEL_POLICIES), default=DEFAULT_LEVEL_POLICY,
                        help='How weekly counts map to heatmap intensity')
    parser.add_argument('--timeout', type=float, default=30.0,
                        help='Per-request timeout in seconds')
    parser.add_argument('--no-color', action='store_true', help='Disable ANSI colors')
    return parser


def build_query(owner: str, after: Optional[date]) -> ChangeQuery:
    query = ChangeQuery(owner).with_status(ChangeStatus.MERGED)
    if after is not None:
        query = query.with_after(after)
    return query


def main(argv: List[str] = None) -> int:
    """Main entry point for the script."""
    # Load environment variables from .env file if it exists
    load_dotenv()
    configure_logging()

    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.owner:
        parser.error('--owner is required (or set GERRIT_OWNER)')

    host_specs = args.hosts or [os.environ.get('GERRIT_HOSTS') or 'chromium']
    try:
        hosts = expand(host_specs)
    except UnknownHostError as e:
        parser.error(str(e))
    if not hosts:
        parser.error('at least one Gerrit host is required')

    level_policy = get_level_policy(args.level_policy)
    fetcher = HostFetcher(hosts, args.username, args.password, timeout=args.timeout)
    now = datetime.now(timezone.utc)

    host_list = ', '.join(alias for alias, _ in hosts)
    logging.info(f"Fetching changes for {args.owner} from [{host_list}]")

    try:
        changes = fetcher.fetch_changes(build_query(args.owner, args.after))
        logging.info(f"{len(changes)} CLs fetched total")

        reviews = []
        if not args.skip_reviews:
            logging.info(f"Fetching reviews for {args.owner}")
            review_query = ReviewerQuery(args.owner).with_after((now - REVIEW_LOOKBACK).date())
            reviews = fetcher.fetch_review_events(review_query)
        logging.info(f"{len(reviews)} review events fetched total")
    except GerritError as e:
        logging.error(f"Fetch failed: {e}")
        return 1

    stats = compute(changes, reviews, now)

    use_color = not args.no_color and sys.stdout.isatty()
    OutputFormatter(args.owner, hosts, level_policy, use_color).print_summary(stats)

    reports = []
    if args.output_md:
        reports.append((args.output_md, render_markdown(args.owner, hosts, stats, level_policy, generated_at=now)))
    if args.output_svg:
        svg = render_svg(args.owner, hosts, stats, theme=args.svg_theme,
                         multi_color=args.svg_multi_color, level_policy=level_policy)
        reports.append((args.output_svg, svg))

    for path, content in reports:
        try:
            with open(path, 'w', encoding='utf-8') as f:
                f.write(content)
        except OSError as e:
            logging.error(f"Could not write {path}: {e}")
            return 1
        logging.info(f"Wrote {path}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
