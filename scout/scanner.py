import asyncio
import contextlib
import logging
import time
from typing import Iterator, List, Optional

from colorama import Fore, Style

from scout.config import ScanConfig
from scout.credentials import Credential, build_credentials, paths_for_depth
from scout.engine import Job, ProbeEngine, Prober
from scout.port_probe import filter_open
from scout.reporter import ResultReporter
from scout.state import FoundState

class RTSPScanner:
    """
    Owns the work queue and worker pool for a scan of operator-supplied targets.
    """

    def __init__(self, config: ScanConfig, reporter: Optional[ResultReporter] = None,
                 prober: Optional[Prober] = None):
        self.config = config
        self.state = FoundState()
        self.reporter = reporter or ResultReporter(config.output)
        self.engine = ProbeEngine(
            self.state,
            self.reporter,
            timeout=config.timeout,
            limit=config.limit,
            paths=paths_for_depth(config.depth),
            prober=prober,
        )
        self.scan_start_time = None

    @staticmethod
    def iter_jobs(targets: List[str], credentials: List[Credential]) -> Iterator[Job]:
        """Credential-major enumeration, root path only"""
        for credential in credentials:
            for target in targets:
                yield Job(target, credential, "/")

    async def _produce(self, queue: asyncio.Queue, jobs: Iterator[Job], workers: int) -> None:
        for job in jobs:
            if self.engine.quota_reached():
                break
            await queue.put(job)
        for _ in range(workers):
            await queue.put(None)

    async def run_async(self, targets: List[str], users: List[str], passwords: List[str]) -> int:
        if self.config.precheck:
            logging.debug(f"Checking {len(targets)} targets for an open RTSP port")
            targets = await filter_open(
                targets,
                self.config.timeout,
                self.state,
                concurrency=self.config.precheck_workers,
                progress=self.config.verbose,
            )
            if not targets:
                print(f"{Fore.YELLOW}[!] No targets with an open RTSP port{Style.RESET_ALL}")
                return self.state.found_count

        credentials = build_credentials(users, passwords)
        workers = min(self.config.workers, max(1, len(targets) * len(credentials)))

        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        tasks = [asyncio.ensure_future(self.engine.worker(queue)) for _ in range(workers)]
        producer = asyncio.ensure_future(self._produce(queue, self.iter_jobs(targets, credentials), workers))

        try:
            await asyncio.gather(*tasks)
        finally:
            # Workers that stop on the quota leave the producer blocked on put()
            producer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await producer
            for task in tasks:
                task.cancel()

        return self.state.found_count

    def scan(self, targets: List[str], users: List[str], passwords: List[str]) -> int:
        """Run a full scan and print the summary. Returns the number of findings."""
        self.scan_start_time = time.time()
        try:
            found = asyncio.run(self.run_async(targets, users, passwords))
        finally:
            self.reporter.close()
        self.reporter.summary(time.time() - self.scan_start_time, self.state.found_count)
        return found
