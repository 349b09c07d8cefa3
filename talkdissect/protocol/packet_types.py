"""
Talk Packet Types: field layouts of the two talkd message structures.

Both structures come from talkd.h and are sent in network byte order:

    CTL_MSG       client → talkd   84 bytes
    CTL_RESPONSE  talkd → client   24 bytes

The two share their first 16 bytes (header, message id and the first
address). A reply stops there; a request carries a second address, the
caller's pid and three fixed-width names.

Addresses are 4.3BSD `struct osockaddr`:

    [sa_family:2][sa_data:14]

Only the IPv4 case is modelled: sa_data[0:2] is the port and sa_data[2:6]
the IPv4 address. The trailing 8 bytes are never read. The family tag is
not a field; the decoder only checks it to flag non-IPv4 addresses.
"""

from __future__ import annotations

import ipaddress
from dataclasses import dataclass
from enum import Enum

TALK_PORT = 518     # udp port of talkd (ntalk)
TALK_VERSION = 1    # only protocol version ever deployed

NAME_SIZE = 12      # NAME_SIZE in talkd.h, caller and callee names
TTY_SIZE = 16       # TTY_SIZE in talkd.h


class Direction(str, Enum):
    REQUEST = "REQUEST"  # CTL_MSG, client → talkd
    REPLY = "REPLY"      # CTL_RESPONSE, talkd → client


@dataclass(frozen=True)
class FieldDef:
    """A field within a talk message."""
    name: str
    offset: int
    size: int
    type: str  # "u8", "u16be", "u32be", "i32be", "ipv4", "str"
    description: str = ""
    enum: str | None = None  # "request" / "reply" code table

    @property
    def end(self) -> int:
        return self.offset + self.size


@dataclass(frozen=True)
class PacketDef:
    """Layout of one talk message structure."""
    name: str
    direction: Direction
    size: int
    fields: tuple[FieldDef, ...]
    # Offsets of the osockaddr structures inside the message
    sockaddr_offsets: tuple[int, ...] = ()


# ---- Shared prefix (both directions) ----

_HEADER = (
    FieldDef("protocol_version", 0, 1, "u8", "Protocol version"),
    FieldDef("request_type", 1, 1, "u8", "Request type", enum="request"),
    FieldDef("reply_type", 2, 1, "u8", "Reply type", enum="reply"),
    FieldDef("pad", 3, 1, "u8", "Pad"),
    FieldDef("message_id", 4, 4, "u32be", "Message ID number"),
    FieldDef("address_port", 10, 2, "u16be", "Address port"),
    FieldDef("address", 12, 4, "ipv4", "Address"),
)

CTL_MSG = PacketDef(
    name="CTL_MSG",
    direction=Direction.REQUEST,
    size=84,
    fields=_HEADER + (
        FieldDef("ctl_address_port", 26, 2, "u16be", "Control address port"),
        FieldDef("ctl_address", 28, 4, "ipv4", "Control address"),
        FieldDef("caller_pid", 40, 4, "i32be", "Caller process ID"),
        FieldDef("caller_name", 44, NAME_SIZE, "str", "Caller's name"),
        FieldDef("callee_name", 56, NAME_SIZE, "str", "Callee's name"),
        FieldDef("callee_tty_name", 68, TTY_SIZE, "str", "Callee's TTY name"),
    ),
    sockaddr_offsets=(8, 24),
)

CTL_RESPONSE = PacketDef(
    name="CTL_RESPONSE",
    direction=Direction.REPLY,
    size=24,
    fields=_HEADER,
    sockaddr_offsets=(8,),
)

LAYOUTS: dict[Direction, PacketDef] = {
    Direction.REQUEST: CTL_MSG,
    Direction.REPLY: CTL_RESPONSE,
}


def packet_def_for(direction: Direction) -> PacketDef:
    return LAYOUTS[Direction(direction)]


def layout_for(direction: Direction) -> tuple[FieldDef, ...]:
    """Ordered field layout for a message direction."""
    return packet_def_for(direction).fields


def decode_field(data: bytes, field_def: FieldDef) -> int | str:
    """Decode a single field from message data.

    The caller guarantees `data` covers the field.
    """
    raw = bytes(data[field_def.offset:field_def.end])
    match field_def.type:
        case "u8":
            return raw[0]
        case "u16be" | "u32be":
            return int.from_bytes(raw, "big", signed=False)
        case "i32be":
            return int.from_bytes(raw, "big", signed=True)
        case "ipv4":
            return str(ipaddress.IPv4Address(raw))
        case "str":
            return raw.split(b"\x00", 1)[0].decode("ascii", errors="replace")
        case _:
            raise ValueError(f"Unknown field type {field_def.type!r} for {field_def.name}")
