import logging
from typing import Optional

from colorama import Fore, Style

LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'

LEVEL_COLORS = {
    logging.DEBUG: Fore.BLUE,
    logging.INFO: Fore.CYAN,
    logging.WARNING: Fore.YELLOW,
    logging.ERROR: Fore.RED,
    logging.CRITICAL: Fore.RED,
}

class ColorFormatter(logging.Formatter):
    """Console formatter coloring each line by level"""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = LEVEL_COLORS.get(record.levelno, "")
        return f"{color}{message}{Style.RESET_ALL}"

def setup_logging(verbose: bool = False, log_file: Optional[str] = None) -> None:
    """
    Console logging shows debug output only in verbose mode, and otherwise
    only errors. An optional log file always receives everything.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in list(root.handlers):
        root.removeHandler(handler)

    console = logging.StreamHandler()
    console.setLevel(logging.DEBUG if verbose else logging.ERROR)
    console.setFormatter(ColorFormatter(LOG_FORMAT))
    root.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(file_handler)

    # asyncio reports slow callbacks and unclosed transports at debug
    logging.getLogger("asyncio").setLevel(logging.WARNING)
