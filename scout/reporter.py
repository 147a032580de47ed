import logging
import threading
from dataclasses import dataclass
from typing import Optional

from colorama import Fore, Style

from scout.credentials import Credential

ANY_PATH = "Accepts any path"

@dataclass(frozen=True)
class Finding:
    target: str
    credential: Credential
    path: str
    fingerprint: str
    url: str

def format_finding(finding: Finding) -> str:
    """Console block for a confirmed stream"""
    return "\n".join([
        f"{Fore.GREEN}╭─ Found vulnerable camera{Style.RESET_ALL} {Fore.YELLOW}[{finding.fingerprint}]{Style.RESET_ALL}",
        f"{Style.BRIGHT}├ Host      :{Style.RESET_ALL} {finding.target}",
        f"{Style.BRIGHT}├ Auth      :{Style.RESET_ALL} {finding.credential}",
        f"{Style.BRIGHT}├ Path      :{Style.RESET_ALL} {finding.path}",
        f"{Style.BRIGHT}╰ URL       :{Style.RESET_ALL} {finding.url}",
    ])

def format_summary(elapsed: float, found: int, output: Optional[str] = None) -> str:
    lines = [
        f"{Style.BRIGHT}[*] Scan completed in{Style.RESET_ALL} {elapsed:.0f}s, "
        f"{Style.BRIGHT}found{Style.RESET_ALL} {Fore.GREEN}{found}{Style.RESET_ALL} vulnerable cameras"
    ]
    if output:
        lines.append(f"{Style.BRIGHT}[*] Results saved to{Style.RESET_ALL} {output}")
    lines.append(f"{Fore.MAGENTA}{'─' * 67}{Style.RESET_ALL}")
    return "\n".join(lines)

class ResultReporter:
    """Prints findings and appends their URLs to the optional output file."""

    def __init__(self, output: Optional[str] = None):
        self.output = output
        self._lock = threading.Lock()
        self._file = None
        if output:
            # Fails before any scanning starts
            self._file = open(output, "w")

    def report(self, finding: Finding, response: Optional[str] = None) -> None:
        with self._lock:
            print(format_finding(finding))
            print()
            if response:
                logging.debug(f"Response from {finding.target}:\n{response}")
            if self._file is not None:
                self._file.write(f"{finding.url}\n")
                self._file.flush()
        logging.info(f"Finding: {finding.url} [{finding.fingerprint}]")

    def summary(self, elapsed: float, found: int) -> None:
        print(format_summary(elapsed, found, self.output))

    def close(self) -> None:
        with self._lock:
            if self._file is not None:
                self._file.close()
                self._file = None
