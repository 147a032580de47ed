import asyncio
import base64
import contextlib
import hashlib
import logging
import os
import re
import struct
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple
from urllib.parse import unquote, urlsplit

USER_AGENT = "RTSPScout"
DEFAULT_PORT = 554

PacketCallback = Callable[[int, bytes], None]

class RTSPError(Exception):
    """Protocol level failure: bad status code, malformed response, bad URL"""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 response: Optional["Response"] = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response

@dataclass
class Response:
    status_code: int
    reason: str
    headers: Dict[str, str]
    challenges: List[str] = field(default_factory=list)
    body: str = ""
    raw: str = ""

    def __str__(self) -> str:
        return self.raw

@dataclass
class Media:
    type: str
    control: str = ""
    formats: List[str] = field(default_factory=list)

@dataclass
class SessionDescription:
    medias: List[Media]
    raw: str = ""

@dataclass
class RTSPURL:
    scheme: str
    host: str
    port: int
    username: Optional[str]
    password: Optional[str]
    request_url: str

    @property
    def address(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

def parse_url(url: str) -> RTSPURL:
    """Split an rtsp:// URL into address, credentials and the credential-free request URL"""
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise RTSPError(f"malformed URL {url}: {e}") from e
    if parts.scheme != "rtsp":
        raise RTSPError(f"unsupported scheme '{parts.scheme}'")
    try:
        port = parts.port or DEFAULT_PORT
    except ValueError as e:
        raise RTSPError(f"invalid port in {url}") from e
    if not parts.hostname:
        raise RTSPError(f"missing host in {url}")

    netloc = parts.netloc.rpartition("@")[2]
    rest = url[len(parts.scheme) + 3 + len(parts.netloc):] or "/"
    username = unquote(parts.username) if parts.username is not None else None
    password = unquote(parts.password) if parts.password is not None else None
    if username is not None and password is None:
        password = ""

    return RTSPURL(
        scheme=parts.scheme,
        host=parts.hostname,
        port=port,
        username=username,
        password=password,
        request_url=f"{parts.scheme}://{netloc}{rest}",
    )

def split_host_port(host: str) -> Tuple[str, int]:
    if host.startswith("["):
        address, _, port = host[1:].partition("]")
        port = port.lstrip(":")
    elif host.count(":") == 1:
        address, _, port = host.partition(":")
    else:
        address, port = host, ""
    try:
        return address, int(port) if port else DEFAULT_PORT
    except ValueError as e:
        raise RTSPError(f"invalid port in {host}") from e

def parse_sdp(text: str) -> SessionDescription:
    medias = []
    current = None
    for line in text.splitlines():
        line = line.strip()
        if line.startswith("m="):
            current = Media(type=line[2:].split(" ", 1)[0])
            medias.append(current)
        elif current is None:
            continue
        elif line.startswith("a=control:"):
            current.control = line[len("a=control:"):].strip()
        elif line.startswith("a=rtpmap:"):
            current.formats.append(line[len("a=rtpmap:"):].split(" ", 1)[-1])
    return SessionDescription(medias=medias, raw=text)

def resolve_control(base_url: str, control: str) -> str:
    if not control or control == "*":
        return base_url
    if control.startswith("rtsp://"):
        return control
    if base_url.endswith("/"):
        return base_url + control
    return f"{base_url}/{control}"

def parse_challenge(header: str) -> Tuple[str, Dict[str, str]]:
    scheme, _, rest = header.strip().partition(" ")
    params = {}
    for key, quoted, bare in re.findall(r'(\w+)\s*=\s*(?:"([^"]*)"|([^,]*))', rest):
        params[key.lower()] = quoted if quoted else bare.strip()
    return scheme.lower(), params

def _md5(value: str) -> str:
    return hashlib.md5(value.encode()).hexdigest()

class BasicAuth:
    def __init__(self, username: str, password: str):
        token = base64.b64encode(f"{username}:{password}".encode()).decode()
        self.header = f"Basic {token}"

    def __call__(self, method: str, uri: str) -> str:
        return self.header

class DigestAuth:
    def __init__(self, username: str, password: str, params: Dict[str, str]):
        self.username = username
        self.password = password
        self.realm = params.get("realm", "")
        self.nonce = params.get("nonce", "")
        self.opaque = params.get("opaque")
        qops = [q.strip() for q in params.get("qop", "").split(",") if q.strip()]
        self.qop = "auth" if "auth" in qops else None
        self.nonce_count = 0

    def __call__(self, method: str, uri: str) -> str:
        ha1 = _md5(f"{self.username}:{self.realm}:{self.password}")
        ha2 = _md5(f"{method}:{uri}")
        header = (f'Digest username="{self.username}", realm="{self.realm}", '
                  f'nonce="{self.nonce}", uri="{uri}"')
        if self.qop:
            self.nonce_count += 1
            nc = f"{self.nonce_count:08x}"
            cnonce = os.urandom(8).hex()
            response = _md5(f"{ha1}:{self.nonce}:{nc}:{cnonce}:{self.qop}:{ha2}")
            header += f', qop={self.qop}, nc={nc}, cnonce="{cnonce}"'
        else:
            response = _md5(f"{ha1}:{self.nonce}:{ha2}")
        header += f', response="{response}"'
        if self.opaque is not None:
            header += f', opaque="{self.opaque}"'
        return header

def build_authorizer(challenges: List[str], username: str, password: str):
    """Pick Digest when offered, Basic otherwise"""
    parsed = [parse_challenge(c) for c in challenges]
    for scheme, params in parsed:
        if scheme == "digest":
            return DigestAuth(username, password, params)
    for scheme, _ in parsed:
        if scheme == "basic":
            return BasicAuth(username, password)
    return None

class RTSPClient:
    """
    Minimal RTSP/1.0 client over TCP with interleaved RTP.

    Session lifecycle: connect() -> describe() -> setup_all() -> play(), with
    packet observers registered through on_packet(). Every network wait is
    bounded by `timeout`.
    """

    def __init__(self, timeout: float = 3.0,
                 on_decode_error: Optional[Callable[[Exception], None]] = None,
                 user_agent: str = USER_AGENT):
        self.timeout = timeout
        self.on_decode_error = on_decode_error
        self.user_agent = user_agent
        self._reader: Optional[asyncio.StreamReader] = None
        self._writer: Optional[asyncio.StreamWriter] = None
        self._cseq = 0
        self._session: Optional[str] = None
        self._authorizer = None
        self._url: Optional[RTSPURL] = None
        self._base_url: Optional[str] = None
        self._callbacks: List[PacketCallback] = []
        self._ssrcs: Dict[int, int] = {}
        self._read_task: Optional[asyncio.Task] = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    async def connect(self, scheme: str, host: str) -> None:
        if scheme != "rtsp":
            raise RTSPError(f"unsupported scheme '{scheme}'")
        address, port = split_host_port(host)
        self._reader, self._writer = await asyncio.wait_for(
            asyncio.open_connection(address, port),
            timeout=self.timeout
        )

    async def describe(self, url: str) -> Tuple[SessionDescription, Response]:
        parsed = parse_url(url)
        response = await self._request("DESCRIBE", parsed, {"Accept": "application/sdp"})
        self._url = parsed
        self._base_url = response.headers.get("content-base") or parsed.request_url
        return parse_sdp(response.body), response

    async def setup_all(self, url: str, medias: List[Media]) -> None:
        parsed = parse_url(url)
        base_url = self._base_url or parsed.request_url
        for index, media in enumerate(medias):
            transport = f"RTP/AVP/TCP;unicast;interleaved={2 * index}-{2 * index + 1}"
            response = await self._request(
                "SETUP", parsed, {"Transport": transport},
                uri=resolve_control(base_url, media.control)
            )
            session = response.headers.get("session")
            if session:
                self._session = session.split(";", 1)[0].strip()

    async def play(self) -> None:
        if self._url is None:
            raise RTSPError("play called before describe")
        await self._request("PLAY", self._url, {"Range": "npt=0.000-"}, uri=self._base_url)
        self._read_task = asyncio.ensure_future(self._read_packets())

    def on_packet(self, callback: PacketCallback) -> None:
        self._callbacks.append(callback)

    async def close(self) -> None:
        if self._read_task is not None:
            self._read_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._read_task
            self._read_task = None
        if self._writer is not None:
            self._writer.close()
            with contextlib.suppress(OSError, asyncio.TimeoutError):
                await asyncio.wait_for(self._writer.wait_closed(), timeout=self.timeout)
            self._writer = None

    async def _request(self, method: str, url: RTSPURL, headers: Optional[Dict[str, str]] = None,
                       uri: Optional[str] = None) -> Response:
        uri = uri or url.request_url
        response = await self._send(method, uri, headers)

        if response.status_code == 401 and url.username is not None and self._authorizer is None:
            self._authorizer = build_authorizer(response.challenges, url.username, url.password)
            if self._authorizer is not None:
                response = await self._send(method, uri, headers)

        if response.status_code != 200:
            raise RTSPError(
                f"bad status code: {response.status_code} ({response.reason})",
                response.status_code, response
            )
        return response

    async def _send(self, method: str, uri: str, headers: Optional[Dict[str, str]]) -> Response:
        if self._writer is None:
            raise RTSPError("not connected")

        self._cseq += 1
        lines = [
            f"{method} {uri} RTSP/1.0",
            f"CSeq: {self._cseq}",
            f"User-Agent: {self.user_agent}",
        ]
        if self._authorizer is not None:
            lines.append(f"Authorization: {self._authorizer(method, uri)}")
        if self._session:
            lines.append(f"Session: {self._session}")
        for name, value in (headers or {}).items():
            lines.append(f"{name}: {value}")

        self._writer.write(("\r\n".join(lines) + "\r\n\r\n").encode())
        await asyncio.wait_for(self._writer.drain(), timeout=self.timeout)
        return await asyncio.wait_for(self._read_response(), timeout=self.timeout)

    async def _readline(self) -> bytes:
        try:
            return await self._reader.readline()
        except (ValueError, asyncio.LimitOverrunError) as e:
            raise RTSPError("response line too long") from e

    async def _read_response(self) -> Response:
        while True:
            first = await self._reader.readexactly(1)
            if first != b"$":
                break
            # Media that arrives ahead of the response
            await self._read_frame()

        status_line = (first + await self._readline()).decode("utf-8", errors="ignore")
        if not status_line.startswith("RTSP/"):
            raise RTSPError(f"invalid response: {status_line.strip()!r}")
        parts = status_line.strip().split(" ", 2)
        try:
            status_code = int(parts[1])
        except (IndexError, ValueError) as e:
            raise RTSPError(f"invalid status line: {status_line.strip()!r}") from e
        reason = parts[2] if len(parts) > 2 else ""

        headers = {}
        challenges = []
        raw_lines = [status_line.rstrip("\r\n")]
        while True:
            line = await self._readline()
            if not line:
                raise RTSPError("connection closed while reading headers")
            text = line.decode("utf-8", errors="ignore").rstrip("\r\n")
            if not text:
                break
            raw_lines.append(text)
            name, _, value = text.partition(":")
            name = name.strip().lower()
            value = value.strip()
            headers[name] = value
            if name == "www-authenticate":
                challenges.append(value)

        body = ""
        length = headers.get("content-length", "0")
        if length.isdigit() and int(length) > 0:
            body = (await self._reader.readexactly(int(length))).decode("utf-8", errors="ignore")

        raw = "\r\n".join(raw_lines) + "\r\n\r\n" + body
        return Response(status_code, reason, headers, challenges, body, raw)

    async def _read_packets(self) -> None:
        try:
            while True:
                first = await self._reader.readexactly(1)
                if first == b"$":
                    await self._read_frame()
                else:
                    await self._skip_message()
        except (asyncio.IncompleteReadError, OSError, RTSPError, ValueError) as e:
            logging.debug(f"RTSP read loop ended: {e}")

    async def _skip_message(self) -> None:
        """Consume a server-initiated RTSP message during playback"""
        length = 0
        while True:
            line = await self._readline()
            if not line:
                raise RTSPError("connection closed")
            text = line.decode("utf-8", errors="ignore").strip()
            if not text:
                break
            name, _, value = text.partition(":")
            if name.strip().lower() == "content-length" and value.strip().isdigit():
                length = int(value.strip())
        if length:
            await self._reader.readexactly(length)

    async def _read_frame(self) -> None:
        header = await self._reader.readexactly(3)
        channel = header[0]
        length = struct.unpack("!H", header[1:3])[0]
        payload = await self._reader.readexactly(length)
        self._handle_frame(channel, payload)

    def _handle_frame(self, channel: int, payload: bytes) -> None:
        # Odd channels carry RTCP
        if channel % 2:
            return
        if len(payload) < 12 or payload[0] >> 6 != 2:
            self._decode_error(RTSPError(f"invalid RTP packet on channel {channel}"))
            return

        ssrc = struct.unpack("!I", payload[8:12])[0]
        expected = self._ssrcs.setdefault(channel, ssrc)
        if ssrc != expected:
            self._decode_error(RTSPError(
                f"received packet with wrong SSRC {ssrc}, expected {expected}"
            ))
            return

        for callback in self._callbacks:
            callback(channel, payload)

    def _decode_error(self, error: Exception) -> None:
        if self.on_decode_error is not None:
            self.on_decode_error(error)
