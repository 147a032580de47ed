import ipaddress
import logging
import os
import sys
from typing import List, Optional, TextIO

DEFAULT_RTSP_PORT = 554
# Largest block expanded in memory, an IPv4 /8
MAX_CIDR_ADDRESSES = 2 ** 24

class ScanInputError(ValueError):
    """Unusable target or credential input"""

def read_lines(path: str) -> List[str]:
    """Read non-blank, stripped lines from a file"""
    try:
        with open(path, "r") as f:
            return [line.strip() for line in f if line.strip()]
    except OSError as e:
        raise ScanInputError(f"Failed to read file {path}: {e}") from e

def parse_input(value: Optional[str]) -> Optional[List[str]]:
    """Turn a file path, comma separated list or single value into a list"""
    if not value:
        return None

    if os.path.isfile(value):
        return read_lines(value)

    if "," in value:
        return [item.strip() for item in value.split(",")]

    return [value]

def expand_cidr(entry: str) -> List[str]:
    """
    Expand a CIDR block to its host addresses. Network and broadcast
    addresses are dropped when the block holds more than two addresses.
    Entries that are not an IP or CIDR are returned unchanged.
    """
    try:
        network = ipaddress.ip_network(entry, strict=False)
    except ValueError:
        return [entry]

    if network.num_addresses > MAX_CIDR_ADDRESSES:
        raise ScanInputError(f"CIDR block {entry} is too large to scan ({network.num_addresses} addresses)")

    ips = [str(ip) for ip in network]
    if len(ips) > 2:
        ips = ips[1:-1]
    return ips

def format_target(entry: str, port: int = DEFAULT_RTSP_PORT) -> str:
    """Append the default RTSP port to a bare address, bracketing IPv6"""
    try:
        address = ipaddress.ip_address(entry)
    except ValueError:
        if ":" not in entry:
            return f"{entry}:{port}"
        return entry

    if address.version == 6:
        return f"[{address}]:{port}"
    return f"{address}:{port}"

def expand_entries(entries: List[str], port: int = DEFAULT_RTSP_PORT) -> List[str]:
    targets = []
    for entry in entries:
        for ip in expand_cidr(entry):
            targets.append(format_target(ip, port))
    return targets

def load_targets(target: Optional[str], stdin: Optional[TextIO] = None,
                 port: int = DEFAULT_RTSP_PORT) -> List[str]:
    """
    Resolve a target argument into normalized host:port targets.

    Accepts a file of IPs/CIDRs, a comma separated list, a single IP or CIDR,
    or (when target is empty) newline separated entries piped on stdin.
    """
    if not target:
        stream = stdin if stdin is not None else sys.stdin
        if stream.isatty():
            raise ScanInputError("No target specified and nothing piped on stdin")
        entries = [line.strip() for line in stream if line.strip()]
        logging.debug(f"Read {len(entries)} target entries from stdin")
    else:
        entries = [entry for entry in parse_input(target) if entry]

    targets = expand_entries(entries, port)
    logging.debug(f"Resolved {len(targets)} targets")
    return targets
