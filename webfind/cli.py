"""
Command-line interface for webfind.
"""

import argparse
import logging
import sys
import time

from tqdm import tqdm

from webfind.config import (
    DEFAULT_KEEP_ALIVE,
    DEFAULT_MAX_BODY_SIZE,
    DEFAULT_MAX_IDLE_CONNS,
    DEFAULT_MAX_IDLE_CONNS_PER_HOST,
    DEFAULT_NAME_PATTERN,
    DEFAULT_TIMEOUT,
    DEFAULT_TLS_HANDSHAKE_TIMEOUT,
    FILE_TYPE_DIR,
    FILE_TYPE_REG,
)
from webfind.core.backoff import DEFAULT_BACKOFF
from webfind.core.crawler import Finder
from webfind.core.policy import ConcurrencyMode, Policy
from webfind.errors import WebfindError
from webfind.fetcher import Fetcher
from webfind.session import TransportOptions
from webfind.utils.log import setup_logging, log


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="webfind",
        description="Find folders and files in web sites using HTTP or HTTPS.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  webfind https://mirrors.edge.kernel.org/centos/8-stream -n 'repomd.xml$'\n"
            "  webfind https://example.com/pub -t d -n '^v[0-9.]+$' --no-recursive\n"
            "  python -m webfind https://example.com/pub --sequential --verbose\n"
        ),
    )
    parser.add_argument(
        "urls", nargs="+", metavar="URL",
        help="Seed URL(s) of the directory listings to search",
    )
    parser.add_argument(
        "-n", "--name", default=DEFAULT_NAME_PATTERN,
        help="Base of file name (the path with the leading directories "
             f"removed) exact pattern (default: {DEFAULT_NAME_PATTERN})",
    )
    parser.add_argument(
        "-t", "--type", dest="file_type", default=None,
        choices=[FILE_TYPE_REG, FILE_TYPE_DIR],
        help="The file type: 'f' for regular files (default), 'd' for directories",
    )
    parser.add_argument(
        "-r", "--recursive", action=argparse.BooleanOptionalAction, default=True,
        help="Whether to examine entries recursing into directories. Disable "
             "to behave like GNU find -maxdepth=0 option (default: on)",
    )
    parser.add_argument(
        "--async", dest="concurrent", action=argparse.BooleanOptionalAction,
        default=True,
        help="Whether to scrape with asynchronous jobs (default: on)",
    )
    parser.add_argument(
        "--sequential", dest="concurrent", action="store_false",
        help="Alias for --no-async",
    )
    parser.add_argument(
        "--workers", type=int, default=None, metavar="N",
        help="Number of concurrent visits in async mode (default: the "
             "connection pool size per host)",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable verbosity to log all visited HTTP(s) files",
    )
    parser.add_argument(
        "--debug", action="store_true",
        help="Enable verbose debug logging",
    )
    parser.add_argument(
        "--log-file",
        help="Write detailed logs to this file (always at DEBUG level)",
    )
    parser.add_argument(
        "--progress", action="store_true",
        help="Show a progress bar of visited listings on stderr",
    )
    parser.add_argument(
        "--no-retry", dest="retry", action="store_false", default=True,
        help="Do not retry timed out or reset connections",
    )
    parser.add_argument(
        "--no-verify-ssl", dest="verify_ssl", action="store_false", default=True,
        help="Disable TLS certificate verification",
    )

    # Timeouts (milliseconds).
    parser.add_argument(
        "--connection-timeout", type=int, default=DEFAULT_TIMEOUT, metavar="MS",
        help="The maximum amount of time in milliseconds a dial will wait for "
             "a connect to complete.",
    )
    parser.add_argument(
        "--keep-alive-interval", type=int, default=DEFAULT_KEEP_ALIVE, metavar="MS",
        help="The interval between keep-alive probes for an active network "
             "connection.",
    )
    parser.add_argument(
        "--tls-handshake-timeout", type=int, default=DEFAULT_TLS_HANDSHAKE_TIMEOUT,
        metavar="MS",
        help="The maximum amount of time in milliseconds a connection will "
             "wait for a TLS handshake.",
    )

    # Sizes.
    parser.add_argument(
        "--connection-pool-size", type=int, default=DEFAULT_MAX_IDLE_CONNS,
        metavar="N",
        help="The maximum number of idle connections across all hosts.",
    )
    parser.add_argument(
        "--connection-pool-size-per-host", type=int,
        default=DEFAULT_MAX_IDLE_CONNS_PER_HOST, metavar="N",
        help="The maximum number of idle connections for each host.",
    )
    parser.add_argument(
        "--max-body-size", type=int, default=DEFAULT_MAX_BODY_SIZE, metavar="BYTES",
        help="The maximum size in bytes a response body is read for each request.",
    )
    return parser.parse_args(argv)


def build_policy(args: argparse.Namespace) -> Policy:
    backoff = DEFAULT_BACKOFF if args.retry else None
    return Policy(
        seeds=tuple(args.urls),
        name_pattern=args.name,
        entry_type=args.file_type,
        recursive=args.recursive,
        concurrency=(ConcurrencyMode.CONCURRENT if args.concurrent
                     else ConcurrencyMode.SEQUENTIAL),
        max_response_bytes=args.max_body_size,
        on_context_deadline=backoff,
        on_connection_timeout=backoff,
        on_connection_reset=backoff,
        verbose=args.verbose,
    )


def build_transport(args: argparse.Namespace) -> TransportOptions:
    return TransportOptions(
        connection_timeout=args.connection_timeout,
        keep_alive=args.keep_alive_interval,
        tls_handshake_timeout=args.tls_handshake_timeout,
        max_idle_conns=args.connection_pool_size,
        max_idle_conns_per_host=args.connection_pool_size_per_host,
    )


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    setup_logging(debug=args.debug, log_file=args.log_file)

    if args.debug:
        logging.getLogger("urllib3").setLevel(logging.DEBUG)

    if not args.verify_ssl:
        import urllib3
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        log.warning("TLS certificate verification is DISABLED (--no-verify-ssl)")

    bar = tqdm(desc="Crawling", unit=" listing", dynamic_ncols=True,
               file=sys.stderr, disable=not args.progress)

    t0 = time.monotonic()
    try:
        policy = build_policy(args)
        fetcher = Fetcher(policy.validated(), transport=build_transport(args),
                          verify_ssl=args.verify_ssl)
        try:
            finder = Finder(
                policy,
                fetcher,
                workers=args.workers,
                on_visit=lambda record: bar.update(1),
            )
            found = finder.find()
        finally:
            fetcher.close()
    except WebfindError as exc:
        bar.close()
        log.error("[ERR] error finding the file: %s", exc)
        sys.exit(1)
    except KeyboardInterrupt:
        bar.close()
        log.warning("Interrupted")
        sys.exit(130)
    bar.close()

    for url in found.urls:
        print(url)

    log.debug("Total elapsed time: %.1f s  (%d visited, %d found)",
              time.monotonic() - t0, len(finder.visits), len(found))


if __name__ == "__main__":
    main()
