import asyncio
import contextlib
import logging
from typing import List

from tqdm import tqdm

from scout.rtsp_client import RTSPError, split_host_port
from scout.state import FoundState

async def probe_port(target: str, timeout: float = 3.0) -> bool:
    """TCP handshake check, no protocol bytes exchanged"""
    try:
        host, port = split_host_port(target)
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except (OSError, asyncio.TimeoutError, RTSPError, ValueError):
        return False

    writer.close()
    with contextlib.suppress(OSError, asyncio.TimeoutError):
        await asyncio.wait_for(writer.wait_closed(), timeout=timeout)
    return True

async def filter_open(targets: List[str], timeout: float, state: FoundState,
                      concurrency: int = 1000, progress: bool = False) -> List[str]:
    """
    Keep the targets with the RTSP port open, in input order. Each target is
    checked once per run.
    """
    semaphore = asyncio.Semaphore(concurrency)
    unique = [t for t in targets if state.mark_attempted(t)]

    with tqdm(total=len(unique), desc="Port check", unit="host", disable=not progress, leave=False) as pbar:
        async def check(target: str) -> bool:
            async with semaphore:
                is_open = await probe_port(target, timeout)
            pbar.update(1)
            if is_open:
                logging.info(f"Found open port: {target}")
            return is_open

        results = await asyncio.gather(*(check(t) for t in unique))

    open_targets = [t for t, is_open in zip(unique, results) if is_open]
    logging.debug(f"{len(open_targets)}/{len(unique)} targets have the RTSP port open")
    return open_targets
