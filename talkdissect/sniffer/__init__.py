from .capture import TalkDatagram, bpf_filter, datagram_from_scapy, read_pcap
from .session import CaptureSession

__all__ = [
    "TalkDatagram", "bpf_filter", "datagram_from_scapy", "read_pcap",
    "CaptureSession",
]
