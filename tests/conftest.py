"""Shared fixtures for talkdissect tests."""

import socket
import struct

import pytest

from talkdissect.sniffer.capture import TalkDatagram

AF_INET = 2


def osockaddr(ip: str = "0.0.0.0", port: int = 0, family: int = AF_INET) -> bytes:
    """4.3BSD struct osockaddr, IPv4 flavour, network byte order."""
    return struct.pack("!HH4s8x", family, port, socket.inet_aton(ip))


def build_request(
    version: int = 1,
    request_type: int = 1,
    answer: int = 0,
    pad: int = 0,
    id_num: int = 7,
    addr: bytes | None = None,
    ctl_addr: bytes | None = None,
    pid: int = 4242,
    l_name: bytes = b"alice",
    r_name: bytes = b"bob",
    r_tty: bytes = b"",
) -> bytes:
    """Build an 84-byte CTL_MSG."""
    return (
        struct.pack("!BBBBI", version, request_type, answer, pad, id_num)
        + (addr if addr is not None else osockaddr("10.0.0.1", 1025))
        + (ctl_addr if ctl_addr is not None else osockaddr("10.0.0.1", 1026))
        + struct.pack("!i12s12s16s", pid, l_name, r_name, r_tty)
    )


def build_reply(
    version: int = 1,
    request_type: int = 1,
    answer: int = 0,
    pad: int = 0,
    id_num: int = 7,
    addr: bytes | None = None,
) -> bytes:
    """Build a 24-byte CTL_RESPONSE."""
    return (
        struct.pack("!BBBBI", version, request_type, answer, pad, id_num)
        + (addr if addr is not None else osockaddr("10.0.0.2", 1027))
    )


@pytest.fixture
def lookup_request() -> bytes:
    """alice asks talkd to look up bob."""
    return build_request(version=1, request_type=1, id_num=7, l_name=b"alice", r_name=b"bob")


@pytest.fixture
def success_reply() -> bytes:
    return build_reply(request_type=1, answer=0, id_num=7)


@pytest.fixture
def request_datagram(lookup_request) -> TalkDatagram:
    """A client → talkd datagram."""
    return TalkDatagram(
        timestamp=1000.0,
        src_ip="10.0.0.1",
        dst_ip="10.0.0.9",
        src_port=1026,
        dst_port=518,
        payload=lookup_request,
    )


@pytest.fixture
def reply_datagram(success_reply) -> TalkDatagram:
    """A talkd → client datagram."""
    return TalkDatagram(
        timestamp=1000.5,
        src_ip="10.0.0.9",
        dst_ip="10.0.0.1",
        src_port=518,
        dst_port=1026,
        payload=success_reply,
    )
