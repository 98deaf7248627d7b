"""
CLI main entry point for the Site Comparator.

Thin wrapper around the core engine - no business logic here.
"""

import argparse
import logging
import sys

from sitediff import ComparatorConfig, JobRunner
from sitediff.auth import AuthenticationError, resolve_credentials
from sitediff.config import RENDERERS, WAIT_STRATEGIES, ConfigError
from sitediff.fetcher import FetchError
from sitediff.storage import FORMATS, FileStorage, StorageError

from .output import print_results_summary

LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(name)s:%(lineno)d] - %(message)s"

# Third-party loggers that are noisy at INFO
SILENCED_LOGGERS = ("httpx", "httpcore", "asyncio")


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr so stdout stays reserved for the report summary."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in SILENCED_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        prog="site-comparator",
        description="Compare two versions of a website and report content drift.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s https://staging.example.com https://example.com
  %(prog)s https://dev.site.com https://site.com --max-pages 50 --format all
  COMPARATOR_USERNAME=user COMPARATOR_PASSWORD=pass %(prog)s https://staging.example.com https://example.com

Environment Variables:
  COMPARATOR_USERNAME      Default username for both sites
  COMPARATOR_PASSWORD      Default password for both sites
  COMPARATOR_USER_<KEY>    Username for a specific domain (KEY = hostname, special chars as _)
  COMPARATOR_PASS_<KEY>    Password for a specific domain
        """,
    )

    parser.add_argument("domain1", type=str, help="Root URL of site 1 (e.g. staging)")
    parser.add_argument("domain2", type=str, help="Root URL of site 2 (e.g. production)")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON configuration file; command-line flags take precedence",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=None,
        help="Maximum pages to crawl per site (default: 20)",
    )
    parser.add_argument(
        "--max-discovery",
        type=int,
        default=None,
        help="Maximum unique links to discover per site (default: 500)",
    )
    parser.add_argument(
        "--delay",
        type=int,
        default=None,
        help="Settle time after each page load in milliseconds (default: 1000)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=None,
        help="Page load timeout in milliseconds (default: 30000)",
    )
    parser.add_argument(
        "-o",
        "--output-dir",
        type=str,
        default=None,
        help="Directory to save reports (default: ./comparator-results)",
    )
    parser.add_argument(
        "-f",
        "--format",
        type=str,
        choices=[*FORMATS, "all"],
        default="all",
        help="Report format (default: all)",
    )
    parser.add_argument(
        "-r",
        "--renderer",
        type=str,
        choices=RENDERERS,
        default=None,
        help="Page renderer: headless browser or plain HTTP (default: browser)",
    )
    parser.add_argument(
        "-w",
        "--wait-strategy",
        type=str,
        choices=WAIT_STRATEGIES,
        default=None,
        help="Wait strategy for browser rendering (default: network_idle)",
    )
    parser.add_argument(
        "--user-agent",
        type=str,
        default=None,
        help="Custom User-Agent header (optional)",
    )
    parser.add_argument("--user1", type=str, default=None, help="Username for site 1")
    parser.add_argument("--pass1", type=str, default=None, help="Password for site 1")
    parser.add_argument("--user2", type=str, default=None, help="Username for site 2")
    parser.add_argument("--pass2", type=str, default=None, help="Password for site 2")
    parser.add_argument(
        "--no-prompt",
        action="store_true",
        help="Never prompt for credentials (for CI)",
    )
    parser.add_argument(
        "--detect-true-reordering",
        action="store_true",
        default=None,
        help="Only flag reordering for content present on both sites",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="INFO",
        help="Logging level (default: INFO)",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> ComparatorConfig:
    """Combine defaults, the optional config file and command-line overrides."""
    config = ComparatorConfig.from_file(args.config) if args.config else ComparatorConfig()

    return config.merged(
        max_pages=args.max_pages,
        max_discovery=args.max_discovery,
        delay=args.delay,
        timeout=args.timeout,
        output_dir=args.output_dir,
        renderer=args.renderer,
        wait_strategy=args.wait_strategy,
        user_agent=args.user_agent,
        detect_true_reordering=args.detect_true_reordering,
    )


def main(argv: list[str] | None = None) -> None:
    """
    Main CLI entry point.

    Orchestrates the entire CLI workflow:
    1. Parse arguments and build configuration
    2. Resolve credentials for both sites
    3. Run the comparison
    4. Display results
    5. Save reports
    """
    args = parse_arguments(argv)
    configure_logging(args.log_level)

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Starting comparison between:\n  Site 1: {args.domain1}\n  Site 2: {args.domain2}\n")

    interactive = not args.no_prompt and sys.stdin.isatty()
    auth1 = resolve_credentials(args.domain1, args.user1, args.pass1, interactive=interactive)
    auth2 = resolve_credentials(args.domain2, args.user2, args.pass2, interactive=interactive)

    runner = JobRunner(config=config)

    try:
        result = runner.run_job(args.domain1, args.domain2, auth1, auth2)
    except (AuthenticationError, FetchError) as e:
        print(f"✗ Comparison failed: {e}", file=sys.stderr)
        sys.exit(1)

    print_results_summary(result)

    try:
        storage = FileStorage(output_directory=config.output_dir)
    except OSError as e:
        print(f"✗ Failed to create output directory {config.output_dir}: {e}", file=sys.stderr)
        sys.exit(1)

    formats = FORMATS if args.format == "all" else (args.format,)

    for report_format in formats:
        try:
            output_path = storage.save(result, format=report_format)
            print(f"✓ {report_format.upper()} report saved to: {output_path}")
        except StorageError as e:
            print(f"✗ Failed to save {report_format} report: {e}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
