"""
Capture Session: a named batch of talk datagrams.

Load from a pcap or a saved JSON session, decode everything, and get a
summary of what the traffic contained:

    session = CaptureSession.from_pcap("talk.pcap")
    print(session.summary())
    session.save("captures")
"""

from __future__ import annotations

import json
import time
from collections import Counter
from pathlib import Path

from ..protocol.decoder import DecodeError, Message
from ..protocol.packet_types import TALK_PORT, Direction
from .capture import TalkDatagram, read_pcap


class CaptureSession:
    """Talk datagrams from one capture, in capture order."""

    def __init__(
        self,
        name: str = "",
        datagrams: list[TalkDatagram] | None = None,
        server_port: int = TALK_PORT,
    ):
        self.name = name or time.strftime("%Y%m%d_%H%M%S")
        self.datagrams: list[TalkDatagram] = datagrams or []
        self.server_port = server_port

    @classmethod
    def from_pcap(cls, path: str | Path, port: int = TALK_PORT) -> CaptureSession:
        return cls(name=Path(path).stem, datagrams=read_pcap(path, port), server_port=port)

    def by_direction(self, direction: Direction) -> list[TalkDatagram]:
        return [d for d in self.datagrams if d.direction is direction]

    def decode_all(self) -> list[tuple[TalkDatagram, Message | DecodeError]]:
        return [(d, d.decode()) for d in self.datagrams]

    def save(self, directory: str | Path = "captures") -> Path:
        """Save session to JSON."""
        out_dir = Path(directory)
        out_dir.mkdir(parents=True, exist_ok=True)
        out_path = out_dir / f"{self.name}.json"

        data = {
            "name": self.name,
            "server_port": self.server_port,
            "datagram_count": len(self.datagrams),
            "datagrams": [d.to_dict() for d in self.datagrams],
        }

        out_path.write_text(json.dumps(data, indent=2))
        return out_path

    @classmethod
    def load(cls, path: str | Path) -> CaptureSession:
        """Load a saved session for analysis."""
        data = json.loads(Path(path).read_text())
        port = data.get("server_port", TALK_PORT)
        return cls(
            name=data["name"],
            datagrams=[TalkDatagram.from_dict(d, port) for d in data.get("datagrams", [])],
            server_port=port,
        )

    def summary(self) -> str:
        """Counts by direction, request type, reply code and truncation."""
        requests: Counter = Counter()
        replies: Counter = Counter()
        truncated = 0
        for _, result in self.decode_all():
            if isinstance(result, DecodeError):
                truncated += 1
                continue
            if result.direction is Direction.REQUEST:
                requests[result["request_type"].display_label] += 1
            else:
                replies[result["reply_type"].display_label] += 1

        lines = [
            f"Session: {self.name}",
            f"  Datagrams: {len(self.datagrams)} total "
            f"({sum(requests.values())} requests, {sum(replies.values())} replies, {truncated} truncated)",
        ]
        for name, count in sorted(requests.items()):
            lines.append(f"    request {name}: {count}")
        for name, count in sorted(replies.items()):
            lines.append(f"    reply {name}: {count}")
        return "\n".join(lines)
