import math
import signal
import sys
from argparse import ArgumentParser, ArgumentTypeError
from logging.handlers import SysLogHandler
from threading import Thread
from typing import List, Optional

from loguru import logger

from . import __version__
from .filters import FilterConfig
from .prober import TARGET_PORT, open_socket
from .services.keepalive import KEEPALIVE_INTERVAL, KeepaliveService
from .subsystems.tailscale import STATUS_TIMEOUT, TAILSCALE_CMD


def split_tags(values: Optional[List[str]]) -> Optional[List[str]]:
    """Flatten comma-separated tag arguments, ``None`` if the flag was not given."""

    if values is None:
        return None
    return [tag for value in values for tag in value.split(",") if tag]


def finite_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError:
        raise ArgumentTypeError(f"invalid number {value!r}") from None
    if not math.isfinite(number):
        raise ArgumentTypeError(f"{value} must be a finite number")
    return number


def non_negative_float(value: str) -> float:
    number = finite_float(value)
    if number < 0:
        raise ArgumentTypeError(f"{value} must be >= 0")
    return number


def udp_port(value: str) -> int:
    try:
        port = int(value)
    except ValueError:
        raise ArgumentTypeError(f"invalid port {value!r}") from None
    if not 0 < port <= 0xFFFF:
        raise ArgumentTypeError(f"port {port} must be between 1 and 65535")
    return port


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="tailscale-keepalived", description="Tailscale keepalive tool")
    parser.add_argument(
        "--with-tags",
        nargs="*",
        metavar="TAGS",
        help="only send packets to peers having at least one of these tags (comma-separated), "
        "e.g. --with-tags tag:server,tag:prod",
    )
    parser.add_argument(
        "--without-tags",
        nargs="*",
        metavar="TAGS",
        help="do not send packets to peers having any of these tags (comma-separated), "
        "e.g. --without-tags tag:test",
    )
    parser.add_argument(
        "-i",
        "--interval",
        type=non_negative_float,
        default=KEEPALIVE_INTERVAL,
        help=f"seconds between keepalive cycles, default is {KEEPALIVE_INTERVAL}",
    )
    parser.add_argument(
        "-p",
        "--port",
        type=udp_port,
        default=TARGET_PORT,
        help=f"peer port to send packets to, default is {TARGET_PORT}",
    )
    parser.add_argument(
        "-t",
        "--tailscale",
        default=TAILSCALE_CMD,
        help=f"tailscale cli to get the peer status from, default is {TAILSCALE_CMD}",
    )
    parser.add_argument(
        "-T",
        "--timeout",
        type=finite_float,
        default=STATUS_TIMEOUT,
        help=f"seconds to wait for the tailscale cli, 0 or less waits forever, default is "
        f"{STATUS_TIMEOUT}",
    )
    parser.add_argument(
        "-c",
        "--count",
        type=int,
        default=-1,
        help="stop after COUNT cycles. Negative values are forever",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="enable verbose logging")
    parser.add_argument("-l", "--log", action="store_true", help="log to only journald")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def setup_logging(verbose: bool, syslog: bool):
    if verbose:
        level = "DEBUG"
    else:
        level = "INFO"

    logger.remove()  # remove default logger
    if syslog:
        logger.add(SysLogHandler(address="/dev/log"), level=level)
    else:
        logger.add(sys.stdout, level=level, filter=lambda record: record["level"].no < 30)
        logger.add(sys.stderr, level="WARNING")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(args.verbose, args.log)

    config = FilterConfig.from_lists(split_tags(args.with_tags), split_tags(args.without_tags))

    logger.info("Starting tailscale-keepalived (IPv4 only)...")
    if config.with_tags is not None:
        logger.info(f"  Filter: Including only tags: {sorted(config.with_tags)}")
    if config.without_tags is not None:
        logger.info(f"  Filter: Excluding tags: {sorted(config.without_tags)}")

    try:
        udp_socket = open_socket()
    except OSError as e:
        logger.error(f"Failed to bind UDP socket: {e}")
        return 1

    service = KeepaliveService(
        udp_socket,
        config,
        interval=args.interval,
        port=args.port,
        command=args.tailscale,
        timeout=args.timeout,
        count=args.count,
    )

    def stop_service(signo, _frame):
        name = signal.Signals(signo).name

        def stop():
            logger.debug(f"signal {name} was caught")
            service.stop()

        # the main thread may hold the stop event's lock when the signal lands
        Thread(target=stop, daemon=True).start()

    for sig in ["SIGTERM", "SIGHUP", "SIGINT"]:
        signal.signal(getattr(signal, sig), stop_service)

    try:
        service.run()
    finally:
        udp_socket.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
