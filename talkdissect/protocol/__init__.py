"""
talkdissect: Protocol Module

Wire layouts and decoder for talk/talkd control messages.

Components:
    enums.py         Request opcode and reply code tables
    packet_types.py  CTL_MSG / CTL_RESPONSE field layouts
    decoder.py       decode(payload, dst_port) → Message | DecodeError
"""

from .enums import UNKNOWN, RequestType, ReplyCode, resolve
from .packet_types import TALK_PORT, Direction, FieldDef, PacketDef, layout_for
from .decoder import DecodedField, DecodeError, Message, Note, decode, infer_direction

__all__ = [
    "UNKNOWN", "RequestType", "ReplyCode", "resolve",
    "TALK_PORT", "Direction", "FieldDef", "PacketDef", "layout_for",
    "DecodedField", "DecodeError", "Message", "Note", "decode", "infer_direction",
]
