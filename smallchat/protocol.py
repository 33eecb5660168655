"""
Line protocol.

Every read from a client is one line. A line starting with ``/`` is a
command, anything else is chat text for the other clients.
"""

from smallchat.config import ENCODING, ENCODING_ERRORS, OUTPUT_BUFFER_SIZE

WELCOME_MESSAGE = b"Welcome to Simple Chat! Use /nick <nick> to set your nick.\n"
UNSUPPORTED_COMMAND = b"Unsupported command\n"
SERVER_FULL = b"Server is full\n"


def decode(data):
    return data.decode(ENCODING, ENCODING_ERRORS)


def encode(text):
    return text.encode(ENCODING, ENCODING_ERRORS)


def parse_line(data):
    """
    Turn one raw read into a request dict.

    Returns one of:
        {"action": "chat", "text": str}
        {"action": "nick", "name": str}
        {"action": "unsupported", "command": str}
    """
    line = decode(data.rstrip(b"\r\n"))

    if not line.startswith("/"):
        return {"action": "chat", "text": line}

    # a command ends at the first CR or LF, whatever follows in the read
    line = line.split("\r", 1)[0].split("\n", 1)[0]
    command, sep, argument = line.partition(" ")
    if command == "/nick" and sep and argument:
        return {"action": "nick", "name": argument}
    return {"action": "unsupported", "command": command}


def format_chat(display_name, text, limit=OUTPUT_BUFFER_SIZE):
    """Build ``<name>> <text>\\n``, cut to ``limit - 1`` bytes if too long."""
    message = encode(f"{display_name}> {text}\n")
    if len(message) >= limit:
        message = message[: limit - 1]
    return message
