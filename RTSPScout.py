# =============================================================================
# Author      : awiones
# Created     : 2025-02-18
# License     : GNU General Public License v3.0
# Description : RTSPScout discovers RTSP cameras on authorized target ranges
#               that accept weak or default credentials, enumerates vendor
#               stream paths and reports validated, playable stream URLs.
# =============================================================================


import argparse
import logging
import sys

from colorama import Fore, Style, init

from scout.config import (
    DEFAULT_PORT,
    DEFAULT_PRECHECK_WORKERS,
    DEFAULT_TIMEOUT,
    DEFAULT_WORKERS,
    ScanConfig,
)
from scout.credentials import DEFAULT_PASSWORDS, DEFAULT_USERS
from scout.hints import get_hint
from scout.logs import setup_logging
from scout.reporter import ResultReporter
from scout.scanner import RTSPScanner
from scout.targets import ScanInputError, load_targets, parse_input

# Initialize colorama
init(autoreset=True)

VERSION = "2.0"

def print_header() -> None:
    print(f"""{Fore.CYAN}
█▀█ ▀█▀ █▀ █▀█ █▀ █▀▀ █▀█ █░█ ▀█▀
█▀▄ ░█░ ▄█ █▀▀ ▄█ █▄▄ █▄█ █▄█ ░█░  v{VERSION}
{Style.RESET_ALL}{Fore.BLUE}           RTSP Camera Credential Auditor{Style.RESET_ALL}
{Fore.MAGENTA}{'─' * 67}{Style.RESET_ALL}""")

def print_usage_hint(error_type: str) -> None:
    """Print helpful usage hints based on error type"""
    print(f"\n{Fore.RED}[!] Usage Error: {Style.RESET_ALL}")
    print(get_hint(error_type))

def parse_arguments(argv=None):
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(
        description=f'''{Fore.CYAN}RTSPScout v{VERSION}{Style.RESET_ALL}
RTSP camera credential auditor for networks you are authorized to test''',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--target', '-t',
        help='Target IP, CIDR range, comma separated list, or file with IPs (reads stdin when omitted)'
    )
    parser.add_argument(
        '--users', '-u',
        help='Custom username(s): file or comma separated list'
    )
    parser.add_argument(
        '--passwords', '-p',
        help='Custom password(s): file or comma separated list'
    )
    parser.add_argument(
        '--workers', '-w',
        type=int,
        default=DEFAULT_WORKERS,
        help=f'Number of parallel workers (default: {DEFAULT_WORKERS})'
    )
    parser.add_argument(
        '--timeout', '-to',
        type=float,
        default=DEFAULT_TIMEOUT,
        help=f'Network timeout in seconds (default: {DEFAULT_TIMEOUT:g})'
    )
    parser.add_argument(
        '--output', '-o',
        help='Append discovered stream URLs to this file'
    )
    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--port',
        type=int,
        default=DEFAULT_PORT,
        help=f'RTSP port for targets without one (default: {DEFAULT_PORT})'
    )
    parser.add_argument(
        '--limit', '-l',
        type=int,
        default=0,
        help='Stop after this many vulnerable cameras (default: no limit)'
    )
    parser.add_argument(
        '--precheck',
        action='store_true',
        help='TCP connect check on every target before RTSP probing'
    )
    parser.add_argument(
        '--precheck-workers',
        type=int,
        default=DEFAULT_PRECHECK_WORKERS,
        help=f'Concurrent connect checks for --precheck (default: {DEFAULT_PRECHECK_WORKERS})'
    )
    parser.add_argument(
        '--depth',
        type=int,
        choices=[1, 2, 3],
        default=3,
        help='Stream path depth (1: Common, 2: Standard, 3: All paths)'
    )
    parser.add_argument(
        '--log-file',
        help='Write a debug log to this file'
    )

    return parser.parse_args(argv)

def main(argv=None) -> int:
    args = parse_arguments(argv)
    setup_logging(args.verbose, args.log_file)

    try:
        if not 1 <= args.port <= 65535:
            print_usage_hint('invalid_port')
            return 1

        users = parse_input(args.users) if args.users else DEFAULT_USERS
        passwords = parse_input(args.passwords) if args.passwords else DEFAULT_PASSWORDS
        if not users or not passwords:
            print_usage_hint('invalid_credentials')
            return 1

        try:
            targets = load_targets(args.target, port=args.port)
        except ScanInputError as e:
            logging.error(f"Target input failed: {e}")
            print_usage_hint('no_target')
            return 1
        if not targets:
            print_usage_hint('no_target')
            return 1

        config = ScanConfig.from_args(args)

        try:
            reporter = ResultReporter(config.output)
        except OSError as e:
            logging.error(f"Failed to create output file: {e}")
            print(f"{Fore.RED}[!] Failed to create output file: {e}{Style.RESET_ALL}")
            print_usage_hint('output_file')
            return 1

        print_header()
        output_str = f"\n[*] Output : {config.output}" if config.output else ""
        print(f"{Style.BRIGHT}[*] Targets: {len(targets)} | Users: {len(users)} | "
              f"Passwords: {len(passwords)} | Workers: {config.workers}{output_str}{Style.RESET_ALL}")
        if config.limit:
            print(f"{Fore.BLUE}[*] Limit is set to {config.limit}{Style.RESET_ALL}")
        print()

        scanner = RTSPScanner(config, reporter=reporter)
        scanner.scan(targets, users, passwords)
        return 0

    except ScanInputError as e:
        print(f"\n{Fore.RED}[!] {e}{Style.RESET_ALL}")
        print_usage_hint('general')
        return 1
    except ValueError as e:
        print(f"\n{Fore.RED}[!] Invalid option: {e}{Style.RESET_ALL}")
        print_usage_hint('general')
        return 1
    except KeyboardInterrupt:
        print(f"\n{Fore.YELLOW}[!] Scan interrupted by user{Style.RESET_ALL}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
