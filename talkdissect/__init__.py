"""talkdissect: decoder for the UNIX talk/talkd control protocol."""

from .protocol import Direction, DecodeError, Message, decode

__version__ = "0.1.0"

__all__ = ["Direction", "DecodeError", "Message", "decode"]
