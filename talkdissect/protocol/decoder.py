"""
Talk Decoder: turn one talk datagram into an ordered list of typed fields.

    decode(payload, dst_port) -> Message | DecodeError

Direction comes from the transport, not the payload: a datagram sent to
the talkd port is a request (CTL_MSG), anything else a reply
(CTL_RESPONSE). The wire format has no direction field, so a reply sent to
port 518 or traffic through a relay on another port will be misread. That
limitation is accepted.

Truncated input is returned as a DecodeError that still carries every
field decoded before the short read.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .enums import is_known, resolve
from .packet_types import (
    TALK_PORT, TALK_VERSION, Direction, FieldDef, PacketDef,
    decode_field, packet_def_for,
)

log = logging.getLogger(__name__)

# sa_family values accepted as IPv4. BSD hosts sent AF_INET in host order,
# so both byte orders of 2 show up on the wire; zeroed addresses are 0.
AF_INET_TAGS = {0x0000, 0x0002, 0x0200}


def infer_direction(dst_port: int, server_port: int = TALK_PORT) -> Direction:
    """REQUEST if the datagram was sent to talkd, else REPLY."""
    return Direction.REQUEST if dst_port == server_port else Direction.REPLY


@dataclass(frozen=True)
class DecodedField:
    """One extracted value with its position in the datagram."""
    name: str
    offset: int
    size: int
    type: str
    value: int | str
    display_label: str
    description: str = ""

    @property
    def byte_range(self) -> tuple[int, int]:
        return self.offset, self.size

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "offset": self.offset,
            "size": self.size,
            "type": self.type,
            "value": self.value,
            "label": self.display_label,
        }

    def __str__(self) -> str:
        title = self.description or self.name
        if self.display_label != str(self.value):
            return f"{title}: {self.display_label} ({self.value})"
        return f"{title}: {self.display_label}"


@dataclass(frozen=True)
class Note:
    """Analyst hint about a decoded message. Never a failure."""
    severity: str  # "note" or "warning"
    offset: int
    text: str

    def to_dict(self) -> dict:
        return {"severity": self.severity, "offset": self.offset, "text": self.text}

    def __str__(self) -> str:
        return f"[{self.severity}] @{self.offset}: {self.text}"


@dataclass(frozen=True)
class Message:
    """A decoded talk message."""
    direction: Direction
    length: int
    fields: tuple[DecodedField, ...] = ()
    notes: tuple[Note, ...] = ()

    @property
    def kind(self) -> str:
        return packet_def_for(self.direction).name

    def field(self, name: str) -> DecodedField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None

    def __getitem__(self, name: str) -> DecodedField:
        f = self.field(name)
        if f is None:
            raise KeyError(name)
        return f

    def __contains__(self, name: str) -> bool:
        return self.field(name) is not None

    def to_dict(self) -> dict:
        return {
            "direction": self.direction.value,
            "kind": self.kind,
            "length": self.length,
            "fields": [f.to_dict() for f in self.fields],
            "notes": [n.to_dict() for n in self.notes],
        }

    def pretty(self) -> str:
        """Indented field listing, one line per field."""
        lines = [f"Talk Protocol, {self.kind} ({self.length} bytes)"]
        for f in self.fields:
            lines.append(f"  [{f.offset:02d}:{f.size:<2d}] {f}")
        for n in self.notes:
            lines.append(f"  {n}")
        return "\n".join(lines)


@dataclass(frozen=True)
class DecodeError:
    """Truncated datagram: `field` is the first field that did not fit."""
    field: str
    offset: int      # bytes consumed by the fields decoded so far
    needed: int      # bytes required to read `field`
    available: int
    message: Message  # partial result

    kind = "truncation"

    @property
    def diagnostic(self) -> str:
        return (
            f"Truncated {self.message.kind}: field {self.field!r} needs "
            f"{self.needed} bytes, got {self.available} (decoded through offset {self.offset})"
        )

    def to_dict(self) -> dict:
        return {
            "error": self.kind,
            "field": self.field,
            "offset": self.offset,
            "needed": self.needed,
            "available": self.available,
            "diagnostic": self.diagnostic,
            "partial": self.message.to_dict(),
        }

    def __str__(self) -> str:
        return self.diagnostic


def _label(field_def: FieldDef, value: int | str) -> str:
    if field_def.enum is not None:
        return resolve(field_def.enum, value)
    return str(value)


def _notes(data: bytes, pdef: PacketDef, fields: list[DecodedField]) -> list[Note]:
    notes: list[Note] = []
    for f in fields:
        if f.name == "protocol_version" and f.value != TALK_VERSION:
            notes.append(Note("warning", f.offset, f"Unexpected protocol version {f.value}"))
        # reply_type is meaningless in a request
        if f.name == "reply_type" and pdef.direction is Direction.REQUEST:
            continue
        if f.name in ("request_type", "reply_type") and not is_known(
            "request" if f.name == "request_type" else "reply", f.value
        ):
            notes.append(Note("warning", f.offset, f"Unknown {f.description.lower()} {f.value}"))

    for off in pdef.sockaddr_offsets:
        if len(data) < off + 2:
            break
        family = int.from_bytes(data[off:off + 2], "big")
        if family not in AF_INET_TAGS:
            notes.append(Note(
                "warning", off,
                f"Address family 0x{family:04x} is not AF_INET; "
                f"port and IPv4 address may be misread",
            ))

    if len(data) > pdef.size:
        notes.append(Note("note", pdef.size, f"{len(data) - pdef.size} trailing bytes after {pdef.name}"))
    return notes


def decode(
    data: bytes,
    dst_port: int,
    server_port: int = TALK_PORT,
) -> Message | DecodeError:
    """Decode one talk datagram payload.

    Never raises for malformed input: a short datagram yields a DecodeError
    holding the fields read before the first one that did not fit.
    """
    direction = infer_direction(dst_port, server_port)
    pdef = packet_def_for(direction)
    length = len(data)

    fields: list[DecodedField] = []
    for fd in pdef.fields:
        if fd.end > length:
            partial = Message(
                direction=direction,
                length=length,
                fields=tuple(fields),
                notes=tuple(_notes(data, pdef, fields)),
            )
            err = DecodeError(
                field=fd.name,
                offset=fields[-1].offset + fields[-1].size if fields else 0,
                needed=fd.end,
                available=length,
                message=partial,
            )
            log.debug(err.diagnostic)
            return err

        value = decode_field(data, fd)
        fields.append(DecodedField(
            name=fd.name,
            offset=fd.offset,
            size=fd.size,
            type=fd.type,
            value=value,
            display_label=_label(fd, value),
            description=fd.description,
        ))

    notes = _notes(data, pdef, fields)
    for n in notes:
        log.debug("%s: %s", pdef.name, n)
    return Message(direction=direction, length=length, fields=tuple(fields), notes=tuple(notes))
