"""
Message framing for the FAH command protocol.

The FAH client ends every reply with its interactive prompt, so a message
is everything received up to the next END_OF_MESSAGE sequence. A single
leading newline is conventionally stripped from the payload.

    welcome banner ... \\n>
    <command>\\n            ->
    \\n<reply bytes>\\n>    <-
"""

import logging
from typing import BinaryIO

from .errors import ErrorCodes, ProtocolError

logger = logging.getLogger(__name__)

END_OF_MESSAGE = b"\n> "


def read_message(reader: BinaryIO) -> bytes:
    """
    Read one prompt-delimited message from a binary stream.

    Reads one byte at a time so nothing past the boundary is consumed;
    whatever follows stays in the stream for the next message.

    Args:
        reader: Blocking binary stream (e.g. socket.makefile("rb") or BytesIO)

    Returns:
        Message bytes without the boundary and without one leading newline

    Raises:
        ProtocolError: If the stream ends before the boundary is seen.
                       The accumulated bytes are kept on ``partial``.
        OSError: Transport errors (including socket.timeout) are not caught

    Example:
        >>> read_message(io.BytesIO(b"\\na\\n> "))
        b'a'
    """
    buffer = bytearray()
    boundary_length = len(END_OF_MESSAGE)

    while True:
        unit = reader.read(1)
        if not unit:
            raise ProtocolError(
                "Connection closed before end of message; "
                "the command might have been invalid",
                partial=bytes(buffer),
                error_code=ErrorCodes.END_OF_STREAM
            )

        buffer += unit

        if len(buffer) >= boundary_length and buffer[-boundary_length:] == END_OF_MESSAGE:
            del buffer[-boundary_length:]
            if buffer[:1] == b"\n":
                del buffer[:1]
            logger.debug(f"Read message of {len(buffer)} bytes")
            return bytes(buffer)
