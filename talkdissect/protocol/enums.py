"""
Talk protocol code tables: request opcodes and reply (answer) codes.

Values are fixed by talkd.h and shared by every talk/talkd implementation,
gaps included. Unknown codes resolve to UNKNOWN instead of failing.
"""

from __future__ import annotations

from enum import IntEnum
from types import MappingProxyType

UNKNOWN = "Unknown"


class RequestType(IntEnum):
    """CTL_MSG.type: what the client asks talkd to do."""
    LEAVE_INVITE = 0
    LOOK_UP = 1
    DELETE = 2
    ANNOUNCE = 3


class ReplyCode(IntEnum):
    """CTL_RESPONSE.answer: talkd's outcome for a request."""
    SUCCESS = 0
    NOT_HERE = 1
    FAILED = 2
    MACHINE_UNKNOWN = 3
    PERMISSION_DENIED = 4
    UNKNOWN_REQUEST = 5
    BADVERSION = 6
    BADADDR = 7
    BADCTLADDR = 8


REQUEST_TYPES = MappingProxyType({m.value: m.name for m in RequestType})
REPLY_CODES = MappingProxyType({m.value: m.name for m in ReplyCode})

TABLES = MappingProxyType({
    "request": REQUEST_TYPES,
    "reply": REPLY_CODES,
})


def resolve(table: str, code: int) -> str:
    """Name for `code` in the "request" or "reply" table, or UNKNOWN."""
    return TABLES[table].get(code, UNKNOWN)


def is_known(table: str, code: int) -> bool:
    return code in TABLES[table]
