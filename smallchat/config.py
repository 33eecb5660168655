from logging import INFO

# Listening endpoint
HOST = "0.0.0.0"
PORT = 8970
LISTEN_BACKLOG = 511

# Handles are socket fds; the slot table holds [0, MAX_CLIENTS).
# select() cannot watch fds past FD_SETSIZE (1024 on Linux).
MAX_CLIENTS = 1000
FD_SETSIZE = 1024

POLL_TIMEOUT = 1.0  # seconds

# One read is one line; the formatted chat line must fit OUTPUT_BUFFER_SIZE - 1 bytes
READ_SIZE = 255
OUTPUT_BUFFER_SIZE = 256

# Display names keep arbitrary bytes
ENCODING = "utf-8"
ENCODING_ERRORS = "surrogateescape"

# colorlog
LOG_FORMAT = "%(log_color)s%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_LEVEL = INFO
LOG_DATE_FORMAT = "%H:%M:%S"
