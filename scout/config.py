import logging
from dataclasses import dataclass
from typing import Optional

from colorama import Fore, Style

DEFAULT_WORKERS = 20
MAX_WORKERS = 1000  # Hard cap on parallel RTSP workers
DEFAULT_TIMEOUT = 3.0
DEFAULT_PRECHECK_WORKERS = 1000
DEFAULT_PORT = 554

@dataclass
class ScanConfig:
    workers: int = DEFAULT_WORKERS
    timeout: float = DEFAULT_TIMEOUT
    port: int = DEFAULT_PORT
    limit: int = 0  # 0: no limit on findings
    precheck: bool = False
    precheck_workers: int = DEFAULT_PRECHECK_WORKERS
    depth: int = 3
    output: Optional[str] = None
    verbose: bool = False

    def __post_init__(self):
        if self.workers < 1:
            raise ValueError("Worker count must be at least 1")
        if self.workers > MAX_WORKERS:
            logging.warning(f"Limiting workers from {self.workers} to {MAX_WORKERS}")
            print(f"{Fore.YELLOW}[!] Limiting parallel checks to {MAX_WORKERS} for better performance{Style.RESET_ALL}")
            self.workers = MAX_WORKERS
        if self.timeout <= 0:
            raise ValueError("Timeout must be positive")
        if not 1 <= self.port <= 65535:
            raise ValueError("Port must be between 1-65535")
        if self.limit < 0:
            raise ValueError("Limit cannot be negative")
        if self.precheck_workers < 1:
            raise ValueError("Pre-check worker count must be at least 1")

    @classmethod
    def from_args(cls, args) -> "ScanConfig":
        return cls(
            workers=args.workers,
            timeout=args.timeout,
            port=args.port,
            limit=args.limit,
            precheck=args.precheck,
            precheck_workers=args.precheck_workers,
            depth=args.depth,
            output=args.output,
            verbose=args.verbose,
        )
