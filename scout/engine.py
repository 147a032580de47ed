# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : RTSPScout probe engine. Validates weak credentials against
#               RTSP cameras and enumerates vendor stream paths for the
#               credentials that the server accepts.
# =============================================================================

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, List, NamedTuple, Optional, Set, Tuple

from scout.credentials import (
    DUMMY_PATH,
    Credential,
    RTSPPath,
    build_url,
    paths_for_depth,
    replace_creds,
)
from scout.fingerprint import get_fingerprint
from scout.reporter import ANY_PATH, Finding, ResultReporter
from scout.rtsp_client import RTSPClient, RTSPError, parse_url
from scout.state import FoundState

class ProbeOutcome(Enum):
    STREAM_CONFIRMED = "stream_confirmed"
    CREDENTIAL_INVALID = "credential_invalid"
    PATH_OR_OTHER_FAILURE = "path_or_other_failure"

@dataclass
class ProbeResult:
    outcome: ProbeOutcome
    response: str = ""

    @property
    def confirmed(self) -> bool:
        return self.outcome is ProbeOutcome.STREAM_CONFIRMED

class Job(NamedTuple):
    target: str
    credential: Credential
    path: str = "/"

Prober = Callable[..., Awaitable[ProbeResult]]

def _failure(response: str) -> ProbeResult:
    if "401" in response:
        return ProbeResult(ProbeOutcome.CREDENTIAL_INVALID, response)
    return ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, response)

def _log_decode_error(error: Exception) -> None:
    # SSRC mismatches are common on multi-stream cameras and say nothing about the stream
    if "SSRC" not in str(error):
        logging.debug(f"Decode error: {error}")

async def probe_stream(url: str, timeout: float = 3.0, media_only: bool = False) -> ProbeResult:
    """
    Test a single RTSP URL.

    The stream is confirmed when DESCRIBE lists at least one media and a data
    packet arrives within `timeout` after PLAY. With media_only the probe
    stops after a DESCRIBE that lists media. Transport failures are never
    retried.
    """
    try:
        parsed = parse_url(url)
    except RTSPError as e:
        return ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, f"Invalid URL: {e}")

    client = RTSPClient(timeout=timeout, on_decode_error=_log_decode_error)
    try:
        try:
            await client.connect(parsed.scheme, parsed.address)
        except (OSError, asyncio.TimeoutError, RTSPError, ValueError) as e:
            return ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, f"Connection error: {e}")

        try:
            desc, response = await client.describe(url)
        except asyncio.TimeoutError:
            return ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, "Describe timeout")
        except RTSPError as e:
            if "401" in str(e):
                return ProbeResult(ProbeOutcome.CREDENTIAL_INVALID, f"Describe error: {e}")
            return ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, f"No media streams: {e}")
        except (OSError, EOFError) as e:
            return ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, f"Describe error: {e}")

        if not desc.medias:
            return ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, "No media streams found")

        if media_only:
            return ProbeResult(ProbeOutcome.STREAM_CONFIRMED, response.raw)

        packet_received = asyncio.Event()
        client.on_packet(lambda channel, payload: packet_received.set())

        try:
            await client.setup_all(url, desc.medias)
        except (RTSPError, OSError, EOFError, asyncio.TimeoutError) as e:
            return _failure(f"Setup error: {e}")

        try:
            await client.play()
        except (RTSPError, OSError, EOFError, asyncio.TimeoutError) as e:
            return _failure(f"Play error: {e}")

        try:
            await asyncio.wait_for(packet_received.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return ProbeResult(ProbeOutcome.PATH_OR_OTHER_FAILURE, "No packets received")

        return ProbeResult(ProbeOutcome.STREAM_CONFIRMED, response.raw)
    finally:
        await client.close()

class ProbeEngine:
    """
    Runs the credential-then-path elimination protocol for queued jobs.

    Per job: the root path is tried first. If it does not stream, a
    nonexistent path tells a rejected credential (401) apart from an accepted
    one (404 or stream). Only accepted credentials sweep the vendor path
    table.
    """

    def __init__(self, state: FoundState, reporter: ResultReporter, timeout: float = 3.0,
                 limit: int = 0, paths: Optional[List[RTSPPath]] = None,
                 prober: Optional[Prober] = None):
        self.state = state
        self.reporter = reporter
        self.timeout = timeout
        self.limit = limit
        self.paths = paths if paths is not None else paths_for_depth(3)
        self.prober = prober or probe_stream

    def quota_reached(self) -> bool:
        return self.state.quota_reached(self.limit)

    async def _probe(self, url: str, media_only: bool = False) -> ProbeResult:
        return await self.prober(url, self.timeout, media_only=media_only)

    def _emit(self, job: Job, path: str, url: str, result: ProbeResult) -> bool:
        if not self.state.try_confirm_host(job.target, self.limit):
            return False
        fingerprint = get_fingerprint(result.response, url)
        self.reporter.report(Finding(job.target, job.credential, path, fingerprint, url), result.response)
        return True

    async def worker(self, queue: asyncio.Queue) -> None:
        """Drain jobs until the close sentinel (None) or the quota is met"""
        tested: Set[Tuple[str, str, str]] = set()
        while True:
            job = await queue.get()
            try:
                if job is None:
                    return
                if not await self.process_job(job, tested):
                    return
            finally:
                queue.task_done()

    async def process_job(self, job: Job, tested: Optional[Set[Tuple[str, str, str]]] = None) -> bool:
        """
        Run the elimination protocol for one job. Returns False when the
        worker should stop because the quota has been reached.
        """
        if self.quota_reached():
            return False

        if self.state.is_host_confirmed(job.target):
            return True

        if tested is not None:
            key = (job.target, job.credential.username, job.credential.password)
            if key in tested:
                return True
            tested.add(key)

        cred = job.credential
        logging.debug(f"[TEST] {job.target} [{cred}]")

        root_url = build_url(cred, job.target, job.path)
        root = await self._probe(root_url)
        if root.confirmed:
            if self.quota_reached():
                return False
            self._emit(job, ANY_PATH, root_url, root)
            return True

        check = await self._probe(build_url(cred, job.target, DUMMY_PATH), media_only=True)
        if not (check.confirmed or "404" in check.response):
            logging.debug(f"[FAIL] {job.target}: {check.response}")
            return True

        logging.info(f"[VALID] Found credentials for {job.target} [{cred}]")
        found_valid_path = False

        for path in self.paths:
            if path.path == "/":
                continue

            processed = replace_creds(path.path, cred.username, cred.password)
            if self.state.is_path_confirmed(job.target, processed):
                continue

            logging.debug(f"[PATH] Trying {processed} on {job.target}")
            url = build_url(cred, job.target, processed)
            result = await self._probe(url)

            if result.confirmed:
                if self.quota_reached():
                    return False
                found_valid_path = True
                self.state.try_confirm_path(job.target, processed)
                if not self._emit(job, processed, url, result):
                    logging.info(f"[PATH] Additional stream on {job.target}: {processed}")
            elif "404" in result.response:
                logging.debug(f"[PATH] Valid path format but no stream: {processed}")

        if not found_valid_path and self.state.warn_once(job.target):
            logging.warning(f"Valid credentials for {job.target} but no working stream path")

        return True
