#!/usr/bin/env python3
import os
import sys
from typing import List, Optional

real_script_path = os.path.realpath(__file__)
project_root = os.path.abspath(os.path.join(os.path.dirname(real_script_path), '..'))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from config.app_config import AppConfig, get_config
from core.dependency_container import DependencyContainer, create_container
from core.logging_config import setup_structured_logging
from service.capacity_service import format_report

USAGE = """Usage: vpn-server-api <command> [options]

Commands:
  serve                  Run the HTTP API server
  status [--verbose]     Show per profile utilization, with --verbose also the connected clients
  housekeeping           Remove expired connection log and TOTP log entries
"""

def status_command(container: DependencyContainer, verbose: bool) -> None:
    report = container.get('capacity_reporter').report()
    sys.stdout.write(format_report(report, verbose))

def housekeeping_command(container: DependencyContainer) -> None:
    now = container.get('clock').now()
    deleted = container.get('housekeeping_service').sweep(now)
    print(f"connection_log: {deleted['connection_log']} removed")
    print(f"totp_log: {deleted['totp_log']} removed")

def serve_command(config: AppConfig) -> None:
    from api.app import main as serve_api
    serve_api(config)

def run(argv: List[str], config: Optional[AppConfig] = None,
        container: Optional[DependencyContainer] = None) -> int:
    """Executes one command, returns the process exit code."""
    if not argv or argv[0] in ('-h', '--help', 'help'):
        print(USAGE, end='')
        return 0 if argv else 1

    command, options = argv[0], argv[1:]
    try:
        if config is None:
            config = get_config()
        setup_structured_logging(config.monitoring.log_level)

        if command == 'serve':
            serve_command(config)
            return 0

        if container is None:
            container = create_container(config)
        try:
            if command == 'status':
                unknown = [o for o in options if o != '--verbose']
                if unknown:
                    raise ValueError(f"unknown option '{unknown[0]}'")
                status_command(container, '--verbose' in options)
            elif command == 'housekeeping':
                if options:
                    raise ValueError(f"unknown option '{options[0]}'")
                housekeeping_command(container)
            else:
                raise ValueError(f"unknown command '{command}'")
        finally:
            container.cleanup()
        return 0
    except Exception as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

def main() -> None:
    sys.exit(run(sys.argv[1:]))

if __name__ == "__main__":
    main()
