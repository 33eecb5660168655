import socket
from logging import getLogger

import colorlog

from smallchat.config import LOG_DATE_FORMAT, LOG_FORMAT, LOG_LEVEL


def setup_logger(name, level=LOG_LEVEL):
    """Return a logger writing colored lines to stderr."""
    logger = getLogger(name)
    if not logger.handlers:
        handler = colorlog.StreamHandler()
        formatter = colorlog.ColoredFormatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def set_nonblock_nodelay(sock):
    """Put an accepted socket in non-blocking mode and disable Nagle."""
    sock.setblocking(False)
    try:
        sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    except OSError:
        # not a TCP socket
        pass
