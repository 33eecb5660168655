from logging import getLogger

logger = getLogger(__name__)


def send_to(record, payload):
    """Best-effort non-blocking write to one client. Returns False on failure."""
    try:
        record.sock.send(payload)
    except OSError as e:
        # the reader side notices the dead peer on its next tick
        logger.debug(f"Write to fd={record.handle} failed: {e}")
        return False
    return True


def broadcast(registry, excluded_handle, payload):
    """Send payload to every live client but excluded_handle, lowest handle first."""
    sent = 0
    for record in list(registry):
        if record.handle == excluded_handle:
            continue
        if send_to(record, payload):
            sent += 1
    return sent
