"""Tests for the capture reader."""

from scapy.all import IP, TCP, UDP, Ether, Raw, wrpcap

from talkdissect.protocol.decoder import DecodeError, Message
from talkdissect.protocol.packet_types import Direction
from talkdissect.sniffer.capture import TalkDatagram, bpf_filter, datagram_from_scapy, read_pcap


def _udp(src, dst, sport, dport, payload, ts=1000.0):
    pkt = Ether() / IP(src=src, dst=dst) / UDP(sport=sport, dport=dport) / Raw(load=payload)
    pkt.time = ts
    return pkt


def test_datagram_direction(request_datagram, reply_datagram):
    assert request_datagram.direction is Direction.REQUEST
    assert reply_datagram.direction is Direction.REPLY


def test_datagram_size(request_datagram, reply_datagram):
    assert request_datagram.size == 84
    assert reply_datagram.size == 24


def test_datagram_pretty_hex(request_datagram):
    lines = request_datagram.pretty_hex.split("\n")
    assert len(lines) == 6  # 84 bytes, 16 per row
    assert lines[0].startswith("  0000  01 01 00 00 00 00 00 07")
    # caller name starts at offset 44, the last four bytes of row 0x20
    assert lines[2].startswith("  0020  ")
    assert lines[2].endswith("............alic")


def test_datagram_to_dict_round_trip(request_datagram):
    d = request_datagram.to_dict()
    assert d["direction"] == "REQUEST"
    assert d["dst"] == "10.0.0.9:518"
    assert TalkDatagram.from_dict(d) == request_datagram


def test_datagram_repr(reply_datagram):
    r = repr(reply_datagram)
    assert "REPLY" in r
    assert "24 bytes" in r


def test_datagram_decode(request_datagram):
    msg = request_datagram.decode()
    assert isinstance(msg, Message)
    assert msg["callee_name"].value == "bob"


def test_custom_server_port(lookup_request):
    dgram = TalkDatagram(0.0, "10.0.0.1", "10.0.0.9", 1026, 5518, lookup_request, server_port=5518)
    assert dgram.direction is Direction.REQUEST
    assert dgram.decode().direction is Direction.REQUEST


def test_bpf_filter():
    assert bpf_filter() == "udp and port 518"
    assert "5518" in bpf_filter(5518)


def test_datagram_from_scapy(lookup_request):
    dgram = datagram_from_scapy(_udp("10.0.0.1", "10.0.0.9", 1026, 518, lookup_request, ts=12.5))
    assert dgram.src_ip == "10.0.0.1"
    assert dgram.dst_port == 518
    assert dgram.timestamp == 12.5
    assert dgram.payload == lookup_request


def test_datagram_from_scapy_ignores_other_traffic():
    assert datagram_from_scapy(_udp("10.0.0.1", "10.0.0.9", 1026, 5000, b"x")) is None
    tcp = Ether() / IP() / TCP(sport=1026, dport=518)
    assert datagram_from_scapy(tcp) is None


def test_read_pcap(tmp_path, lookup_request, success_reply):
    path = tmp_path / "talk.pcap"
    wrpcap(str(path), [
        _udp("10.0.0.1", "10.0.0.9", 1026, 518, lookup_request, ts=1000.0),
        _udp("10.0.0.1", "10.0.0.9", 40000, 5000, b"not talk", ts=1000.1),
        _udp("10.0.0.9", "10.0.0.1", 518, 1026, success_reply, ts=1000.2),
    ])

    datagrams = read_pcap(path)
    assert len(datagrams) == 2
    assert [d.direction for d in datagrams] == [Direction.REQUEST, Direction.REPLY]
    assert datagrams[0].payload == lookup_request
    assert datagrams[1].payload == success_reply


def test_read_pcap_drops_ethernet_padding(tmp_path):
    # 10-byte reply: too short for a CTL_RESPONSE, and short enough that
    # the Ethernet frame is padded to the 60-byte minimum
    short = bytes(range(1, 11))
    frame = Ether(bytes(_udp("10.0.0.9", "10.0.0.1", 518, 1026, short)) + b"\x00" * 8)
    frame.time = 1000.0
    path = tmp_path / "padded.pcap"
    wrpcap(str(path), [frame])

    [dgram] = read_pcap(path)
    assert dgram.payload == short
    result = dgram.decode()
    assert isinstance(result, DecodeError)
    assert result.field == "address_port"
    assert result.available == 10
