import select
import socket
from logging import getLogger

from smallchat.broadcast import broadcast, send_to
from smallchat.config import (
    HOST,
    LISTEN_BACKLOG,
    LOG_LEVEL,
    MAX_CLIENTS,
    POLL_TIMEOUT,
    PORT,
    READ_SIZE,
)
from smallchat.protocol import (
    SERVER_FULL,
    UNSUPPORTED_COMMAND,
    WELCOME_MESSAGE,
    format_chat,
    parse_line,
)
from smallchat.registry import ConnectionRegistry, DuplicateHandle, RegistryFull
from smallchat.utils import set_nonblock_nodelay, setup_logger


class ChatServer:
    def __init__(
        self,
        host=HOST,
        port=PORT,
        max_clients=MAX_CLIENTS,
        poll_timeout=POLL_TIMEOUT,
        read_size=READ_SIZE,
        log_level=LOG_LEVEL,
    ):
        self.host = host
        self.port = port
        self.poll_timeout = poll_timeout
        self.read_size = read_size
        self.registry = ConnectionRegistry(max_clients)
        self.server_socket = None
        self.accept_failing = False
        setup_logger("smallchat", log_level)
        self.logger = getLogger(__name__)

    def listen(self):
        """Create the listening socket. Any OSError here is fatal."""
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            server.bind((self.host, self.port))
            server.listen(LISTEN_BACKLOG)
            server.setblocking(False)
        except OSError:
            server.close()
            raise

        self.server_socket = server
        self.port = server.getsockname()[1]
        self.logger.info(f"Chat server started on {self.host}:{self.port}")

    def serve_forever(self):
        if self.server_socket is None:
            self.listen()
        while True:
            self.tick()

    def poll_set(self):
        socks = [self.server_socket]
        self.registry.for_each_live(lambda record: socks.append(record.sock))
        return socks

    def tick(self):
        """Wait for readiness once, then accept and serve what is ready."""
        readable, _, _ = select.select(self.poll_set(), [], [], self.poll_timeout)
        if not readable:
            return

        ready = set(readable)
        clients = [record for record in self.registry if record.sock in ready]

        if self.server_socket in ready:
            self.accept_client()

        for record in clients:
            self.handle_client(record)

    def accept_client(self):
        """Accept at most one pending connection."""
        while True:
            try:
                client, address = self.server_socket.accept()
            except InterruptedError:
                continue
            except BlockingIOError:
                return None
            except OSError as e:
                # a persistent error (EMFILE) repeats every tick; warn once per streak
                log = self.logger.debug if self.accept_failing else self.logger.warning
                log(f"Accept failed: {e}")
                self.accept_failing = True
                return None
            break
        self.accept_failing = False

        set_nonblock_nodelay(client)
        handle = client.fileno()
        try:
            record = self.registry.register(handle, client, address)
        except DuplicateHandle:
            client.close()
            raise
        except RegistryFull:
            self.logger.warning(f"Rejected client fd={handle} from {address}: server is full")
            try:
                client.send(SERVER_FULL)
            except OSError:
                pass
            client.close()
            return None

        send_to(record, WELCOME_MESSAGE)
        self.logger.info(f"Connected client fd={handle}")
        return record

    def handle_client(self, record):
        """Read one chunk from a ready client and act on it as one line."""
        try:
            data = record.sock.recv(self.read_size)
        except BlockingIOError:
            return
        except OSError as e:
            self.logger.debug(f"Read from fd={record.handle} failed: {e}")
            data = b""

        if not data:
            self.disconnect(record)
            return

        self.route_request(record, parse_line(data))

    def disconnect(self, record):
        self.logger.info(f"Disconnected client fd={record.handle}, nick={record.display_name}")
        self.registry.unregister(record.handle)

    def route_request(self, record, request):
        action = request["action"]

        if action == "nick":
            self.logger.debug(f"fd={record.handle} is now known as {request['name']}")
            record.display_name = request["name"]

        elif action == "chat":
            message = format_chat(record.display_name, request["text"])
            self.logger.info(f"{record.display_name}> {request['text']}")
            broadcast(self.registry, record.handle, message)

        else:
            send_to(record, UNSUPPORTED_COMMAND)

    def close(self):
        for record in list(self.registry):
            self.registry.unregister(record.handle)
        if self.server_socket is not None:
            self.server_socket.close()
            self.server_socket = None
        self.logger.info("Chat server stopped.")
