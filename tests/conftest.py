import asyncio
import base64
import hashlib
import struct
from typing import Dict, Iterable, List, Optional, Tuple

import pytest

from scout.engine import ProbeOutcome, ProbeResult
from scout.reporter import ResultReporter
from scout.rtsp_client import parse_challenge

SDP_H264 = (
    "v=0\r\n"
    "o=- 1 1 IN IP4 127.0.0.1\r\n"
    "s=Media Presentation\r\n"
    "t=0 0\r\n"
    "m=video 0 RTP/AVP 96\r\n"
    "a=rtpmap:96 H264/90000\r\n"
    "a=framerate:30\r\n"
    "a=control:trackID=1\r\n"
)

REALM = "IP Camera"
NONCE = "0123456789abcdef"

def rtp_packet(seq: int, ssrc: int) -> bytes:
    return struct.pack("!BBHII", 0x80, 96, seq, 0, ssrc) + b"\x00" * 10

def interleaved(channel: int, payload: bytes) -> bytes:
    return b"$" + bytes([channel]) + struct.pack("!H", len(payload)) + payload

def _md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest()

class FakeCamera:
    """
    In-process RTSP server. DESCRIBE answers 401 without valid credentials,
    404 for unknown paths, and the SDP for known stream paths. PLAY is
    followed by interleaved RTP packets.
    """

    def __init__(self, username: str = "admin", password: str = "12345", auth: str = "basic",
                 streams: Iterable[str] = ("/Streaming/Channels/1",), sdp: str = SDP_H264,
                 ssrcs: Iterable[int] = (1234,), send_packets: bool = True):
        self.username = username
        self.password = password
        self.auth = auth
        self.streams = set(streams)
        self.sdp = sdp
        self.ssrcs = list(ssrcs)
        self.send_packets = send_packets
        self.requests: List[Tuple[str, str, Dict[str, str]]] = []
        self.server = None
        self.port = None

    async def __aenter__(self):
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.server.close()
        await self.server.wait_closed()

    @property
    def target(self) -> str:
        return f"127.0.0.1:{self.port}"

    def _authorized(self, method: str, headers: Dict[str, str]) -> bool:
        header = headers.get("authorization")
        if not header:
            return False
        if self.auth == "basic":
            token = base64.b64encode(f"{self.username}:{self.password}".encode()).decode()
            return header == f"Basic {token}"

        scheme, params = parse_challenge(header)
        if scheme != "digest" or params.get("username") != self.username:
            return False
        ha1 = _md5(f"{self.username}:{REALM}:{self.password}")
        ha2 = _md5(f"{method}:{params.get('uri', '')}")
        if params.get("qop"):
            expected = _md5(f"{ha1}:{NONCE}:{params['nc']}:{params['cnonce']}:{params['qop']}:{ha2}")
        else:
            expected = _md5(f"{ha1}:{NONCE}:{ha2}")
        return params.get("response") == expected

    def _challenge(self) -> str:
        if self.auth == "basic":
            return f'Basic realm="{REALM}"'
        if self.auth == "digest-qop":
            return f'Digest realm="{REALM}", nonce="{NONCE}", qop="auth"'
        return f'Digest realm="{REALM}", nonce="{NONCE}"'

    async def _read_request(self, reader) -> Optional[Tuple[str, str, Dict[str, str]]]:
        line = await reader.readline()
        if not line:
            return None
        method, uri, _ = line.decode().strip().split(" ", 2)
        headers = {}
        while True:
            line = await reader.readline()
            if not line or line in (b"\r\n", b"\n"):
                break
            name, _, value = line.decode().partition(":")
            headers[name.strip().lower()] = value.strip()
        return method, uri, headers

    def _response(self, cseq: str, code: int, reason: str,
                  headers: Optional[Dict[str, str]] = None, body: str = "") -> bytes:
        lines = [f"RTSP/1.0 {code} {reason}", f"CSeq: {cseq}"]
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")
        if body:
            lines.append(f"Content-Length: {len(body.encode())}")
        return ("\r\n".join(lines) + "\r\n\r\n" + body).encode()

    def _path(self, uri: str) -> str:
        rest = uri.split("://", 1)[-1]
        index = rest.find("/")
        return rest[index:] if index >= 0 else "/"

    async def _handle(self, reader, writer):
        try:
            while True:
                request = await self._read_request(reader)
                if request is None:
                    break
                method, uri, headers = request
                self.requests.append(request)
                cseq = headers.get("cseq", "0")

                if not self._authorized(method, headers):
                    writer.write(self._response(cseq, 401, "Unauthorized",
                                                {"WWW-Authenticate": self._challenge()}))
                elif method == "DESCRIBE":
                    path = self._path(uri)
                    if path in self.streams:
                        writer.write(self._response(cseq, 200, "OK", {
                            "Content-Type": "application/sdp",
                            "Content-Base": uri.rstrip("/") + "/",
                        }, self.sdp))
                    else:
                        writer.write(self._response(cseq, 404, "Not Found"))
                elif method == "SETUP":
                    writer.write(self._response(cseq, 200, "OK", {
                        "Session": "12345678;timeout=60",
                        "Transport": headers.get("transport", ""),
                    }))
                elif method == "PLAY":
                    writer.write(self._response(cseq, 200, "OK", {"Session": "12345678"}))
                    if self.send_packets:
                        for seq, ssrc in enumerate(self.ssrcs):
                            writer.write(interleaved(0, rtp_packet(seq, ssrc)))
                else:
                    writer.write(self._response(cseq, 405, "Method Not Allowed"))
                await writer.drain()
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            writer.close()

class RawServer:
    """Answers the first request line with fixed bytes, then waits for the client to hang up"""

    def __init__(self, reply: bytes):
        self.reply = reply
        self.server = None
        self.port = None

    async def __aenter__(self):
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.server.close()
        await self.server.wait_closed()

    @property
    def target(self) -> str:
        return f"127.0.0.1:{self.port}"

    async def _handle(self, reader, writer):
        try:
            await reader.readline()
            writer.write(self.reply)
            await writer.drain()
            await reader.read()
        except ConnectionError:
            pass
        finally:
            writer.close()

OVERSIZED_HEADER = b"RTSP/1.0 200 OK\r\nCSeq: 1\r\nX-Padding: " + b"a" * 70000 + b"\r\n\r\n"

class FakeProber:
    """Scripted prober: exact URL matches first, then substring rules"""

    def __init__(self, results: Optional[Dict[str, ProbeResult]] = None,
                 rules: Optional[List[Tuple[str, ProbeResult]]] = None,
                 default: Optional[ProbeResult] = None):
        self.results = results or {}
        self.rules = rules or []
        self.default = default or ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, "No media streams found")
        self.calls: List[Tuple[str, bool]] = []

    async def __call__(self, url: str, timeout: float = 3.0, media_only: bool = False) -> ProbeResult:
        self.calls.append((url, media_only))
        await asyncio.sleep(0)
        if url in self.results:
            return self.results[url]
        for fragment, result in self.rules:
            if fragment in url:
                return result
        return self.default

class RecordingReporter(ResultReporter):
    def __init__(self):
        super().__init__(None)
        self.findings = []

    def report(self, finding, response=None):
        self.findings.append(finding)

def confirmed(response: str = "") -> ProbeResult:
    return ProbeResult(ProbeOutcome.STREAM_CONFIRMED, response)

NOT_FOUND = ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, "No media streams: bad status code: 404 (Not Found)")
UNAUTHORIZED = ProbeResult(ProbeOutcome.CREDENTIAL_INVALID, "Describe error: bad status code: 401 (Unauthorized)")

@pytest.fixture
def reporter():
    return RecordingReporter()
