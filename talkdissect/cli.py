"""
talkdissect: decode talk/talkd traffic from the command line.

Usage:
  talkdissect capture.pcap                  # Field listing per datagram
  talkdissect capture.pcap --json           # JSON, one object per datagram
  talkdissect capture.pcap --summary        # Counts only
  talkdissect capture.pcap --save captures  # Also save session JSON
  talkdissect --hex 0101000000000007... --dst-port 518
  talkdissect --session captures/talk.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from scapy.error import Scapy_Exception

from .protocol.decoder import DecodeError, decode
from .protocol.packet_types import TALK_PORT
from .sniffer.capture import TalkDatagram, bpf_filter
from .sniffer.session import CaptureSession

log = logging.getLogger("talkdissect")


def _print_result(dgram: TalkDatagram, result, raw: bool = False) -> None:
    print(dgram)
    if raw:
        print(dgram.pretty_hex)
    if isinstance(result, DecodeError):
        print(f"  [Malformed Packet] {result.diagnostic}")
        print("\n".join("  " + line for line in result.message.pretty().splitlines()))
    else:
        print(result.pretty())
    print()


def decode_hex(hex_payload: str, dst_port: int | None, port: int, as_json: bool) -> int:
    payload = bytes.fromhex(hex_payload.replace(" ", "").replace(":", ""))
    result = decode(payload, port if dst_port is None else dst_port, port)
    if as_json:
        print(json.dumps(result.to_dict(), indent=2))
    elif isinstance(result, DecodeError):
        print(f"[Malformed Packet] {result.diagnostic}")
        print(result.message.pretty())
    else:
        print(result.pretty())
    return 0


def run(args: argparse.Namespace) -> int:
    if args.hex:
        return decode_hex(args.hex, args.dst_port, args.port, args.json)

    if args.session:
        session = CaptureSession.load(args.session)
    else:
        session = CaptureSession.from_pcap(args.pcap, port=args.port)

    if args.summary:
        print(session.summary())
    elif args.json:
        out = []
        for dgram, result in session.decode_all():
            entry = dgram.to_dict()
            entry["decoded"] = result.to_dict()
            out.append(entry)
        print(json.dumps(out, indent=2))
    else:
        for dgram, result in session.decode_all():
            _print_result(dgram, result, raw=args.raw)

    if args.save:
        out_path = session.save(args.save)
        log.info("Session saved: %s (%d datagrams)", out_path, len(session.datagrams))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="talkdissect",
        description="Decode talk/talkd control messages",
        epilog=f"Capture talk traffic with the filter: {bpf_filter()}",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("pcap", nargs="?", help="Saved capture file (pcap)")
    source.add_argument("--hex", help="Decode a single payload given as hex")
    source.add_argument("--session", help="Decode a saved session JSON file")
    parser.add_argument("--dst-port", type=int, default=None,
                        help="Destination port of the --hex payload (default: --port)")
    parser.add_argument("--port", type=int, default=TALK_PORT,
                        help=f"talkd server port (default: {TALK_PORT})")
    parser.add_argument("--json", action="store_true", help="Emit JSON")
    parser.add_argument("--summary", action="store_true", help="Only print session counts")
    parser.add_argument("--raw", action="store_true", help="Show hex dump of each datagram")
    parser.add_argument("--save", metavar="DIR", help="Save the session as JSON into DIR")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        return run(args)
    except (OSError, Scapy_Exception, ValueError, KeyError) as e:
        log.error("Cannot decode input: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
