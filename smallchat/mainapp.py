import argparse
import logging
import sys
from logging import getLogger

from smallchat.config import FD_SETSIZE, HOST, MAX_CLIENTS, POLL_TIMEOUT, PORT
from smallchat.registry import DuplicateHandle
from smallchat.server import ChatServer


def table_size(value):
    size = int(value)
    if not 1 <= size <= FD_SETSIZE:
        raise argparse.ArgumentTypeError(f"must be between 1 and {FD_SETSIZE} (select() limit)")
    return size


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Minimal multi-user chat server")
    parser.add_argument("--host", default=HOST, help=f"Bind address (default: {HOST})")
    parser.add_argument("--port", type=int, default=PORT, help=f"TCP port (default: {PORT})")
    parser.add_argument(
        "--max-clients",
        type=table_size,
        default=MAX_CLIENTS,
        help=f"Size of the connection table, at most {FD_SETSIZE} (default: {MAX_CLIENTS})",
    )
    parser.add_argument(
        "--poll-timeout",
        type=float,
        default=POLL_TIMEOUT,
        help=f"Seconds per readiness wait (default: {POLL_TIMEOUT})",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    server = ChatServer(
        host=args.host,
        port=args.port,
        max_clients=args.max_clients,
        poll_timeout=args.poll_timeout,
        log_level=getattr(logging, args.log_level),
    )
    logger = getLogger("smallchat")

    try:
        server.listen()
    except OSError as e:
        logger.critical(f"Creating listening socket: {e}")
        return 1

    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server shutting down.")
    except (OSError, ValueError, DuplicateHandle) as e:
        logger.critical(f"Event loop failed: {e}")
        return 1
    finally:
        server.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
