from colorama import Fore, Style

def get_hint(error_type: str) -> str:
    """Return formatted usage hint based on error type"""
    hints = {
        'no_target': f"""
{Fore.YELLOW}A target is required. Use:
{Fore.CYAN}python RTSPScout.py --target <IP/CIDR/FILE> {Fore.GREEN}[options]
{Fore.YELLOW}or pipe targets in:
{Fore.CYAN}cat targets.txt | python RTSPScout.py {Fore.GREEN}[options]{Style.RESET_ALL}
        """,

        'invalid_credentials': f"""
{Fore.YELLOW}Usernames and passwords take a file or a comma separated list. Use:
{Fore.CYAN}python RTSPScout.py --target <IP> -u admin,root -p 12345,admin
python RTSPScout.py --target <IP> -u users.txt -p passwords.txt{Style.RESET_ALL}
        """,

        'invalid_port': f"""
{Fore.YELLOW}Invalid port specified. Port must be between 1-65535. Use:
{Fore.CYAN}python RTSPScout.py --target <IP> --port <PORT>
{Fore.YELLOW}Example:
{Fore.CYAN}python RTSPScout.py --target 192.168.1.100 --port 8554{Style.RESET_ALL}
        """,

        'output_file': f"""
{Fore.YELLOW}The output file could not be created. Check the directory exists and is writable:
{Fore.CYAN}python RTSPScout.py --target <IP> -o results.txt{Style.RESET_ALL}
        """,

        'general': f"""
{Fore.YELLOW}For complete usage information, use:
{Fore.CYAN}python RTSPScout.py --help

{Fore.YELLOW}Common usage patterns:
{Fore.CYAN}1. Single IP:       python RTSPScout.py -t 192.168.1.100
2. Network range:   python RTSPScout.py -t 192.168.1.0/24 -u admin,root -p pass123,admin123
3. Targets file:    python RTSPScout.py -t targets.txt -w 50
4. Piped targets:   cat hosts.txt | python RTSPScout.py --timeout 10
5. Save results:    python RTSPScout.py -t 10.0.0.0/24 -o results.txt -v{Style.RESET_ALL}
        """
    }

    return hints.get(error_type, hints['general'])
