"""
talkdissect: Capture Reader

Pulls talk datagrams out of saved capture files using scapy.
Any UDP datagram to or from the talkd port is kept.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from scapy.all import IP, UDP, PcapReader

from ..protocol.decoder import DecodeError, Message, decode, infer_direction
from ..protocol.packet_types import TALK_PORT, Direction

log = logging.getLogger(__name__)


@dataclass
class TalkDatagram:
    """One talk datagram with its transport metadata."""
    timestamp: float
    src_ip: str
    dst_ip: str
    src_port: int
    dst_port: int
    payload: bytes
    server_port: int = TALK_PORT

    @property
    def direction(self) -> Direction:
        return infer_direction(self.dst_port, self.server_port)

    @property
    def size(self) -> int:
        return len(self.payload)

    @property
    def hex_dump(self) -> str:
        return self.payload.hex()

    @property
    def pretty_hex(self) -> str:
        """16-byte wide hex dump with ASCII."""
        lines = []
        data = self.payload
        for i in range(0, len(data), 16):
            chunk = data[i:i+16]
            hex_part = " ".join(f"{b:02x}" for b in chunk)
            ascii_part = "".join(chr(b) if 32 <= b < 127 else "." for b in chunk)
            lines.append(f"  {i:04x}  {hex_part:<48s}  {ascii_part}")
        return "\n".join(lines)

    def decode(self) -> Message | DecodeError:
        return decode(self.payload, self.dst_port, self.server_port)

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "direction": self.direction.value,
            "src": f"{self.src_ip}:{self.src_port}",
            "dst": f"{self.dst_ip}:{self.dst_port}",
            "size": self.size,
            "payload_hex": self.hex_dump,
        }

    @classmethod
    def from_dict(cls, d: dict, server_port: int = TALK_PORT) -> TalkDatagram:
        src_ip, src_port = d["src"].rsplit(":", 1)
        dst_ip, dst_port = d["dst"].rsplit(":", 1)
        return cls(
            timestamp=d.get("timestamp", 0.0),
            src_ip=src_ip,
            dst_ip=dst_ip,
            src_port=int(src_port),
            dst_port=int(dst_port),
            payload=bytes.fromhex(d.get("payload_hex", "")),
            server_port=server_port,
        )

    def __repr__(self) -> str:
        arrow = "→" if self.direction is Direction.REQUEST else "←"
        return (
            f"[{self.direction.value}] {self.src_ip}:{self.src_port} "
            f"{arrow} {self.dst_ip}:{self.dst_port} "
            f"({self.size} bytes)"
        )


def bpf_filter(port: int = TALK_PORT) -> str:
    """BPF expression matching talk traffic, for use with external capture tools."""
    return f"udp and port {port}"


def datagram_from_scapy(raw_pkt, port: int = TALK_PORT) -> TalkDatagram | None:
    """Convert a scapy packet to a TalkDatagram, or None if it is not talk traffic."""
    if not raw_pkt.haslayer(UDP) or not raw_pkt.haslayer(IP):
        return None

    ip_layer = raw_pkt[IP]
    udp_layer = raw_pkt[UDP]
    if port not in (udp_layer.sport, udp_layer.dport):
        return None

    payload = bytes(udp_layer.payload)
    # Ethernet minimum-frame padding ends up under the UDP payload
    if udp_layer.len is not None:
        payload = payload[:max(udp_layer.len - 8, 0)]

    return TalkDatagram(
        timestamp=float(raw_pkt.time),
        src_ip=ip_layer.src,
        dst_ip=ip_layer.dst,
        src_port=udp_layer.sport,
        dst_port=udp_layer.dport,
        payload=payload,
        server_port=port,
    )


def read_pcap(path: str | Path, port: int = TALK_PORT) -> list[TalkDatagram]:
    """Read every talk datagram from a saved pcap file."""
    datagrams: list[TalkDatagram] = []
    skipped = 0
    with PcapReader(str(path)) as reader:
        for raw_pkt in reader:
            dgram = datagram_from_scapy(raw_pkt, port)
            if dgram is None:
                skipped += 1
                continue
            datagrams.append(dgram)
    log.info("Read %d talk datagrams from %s (%d other packets skipped)", len(datagrams), path, skipped)
    return datagrams
