#!/usr/bin/env python3
"""
Victron Bluetooth Safety Installer
Copyright 2026 TechBlueprints

Licensed under the Apache License, Version 2.0 (the "License");
you may not use this file except in compliance with the License.
You may obtain a copy of the License at

    http://www.apache.org/licenses/LICENSE-2.0

Unless required by applicable law or agreed to in writing, software
distributed under the License is distributed on an "AS IS" BASIS,
WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
See the License for the specific language governing permissions and
limitations under the License.
"""

import argparse
import signal
import sys
from typing import List, Optional
from .config import InstallerConfig, load_config
from .manager import BluetoothSafetyManager
from .utils.index import log_message, setup_logging
from .utils.mount import OperationInterrupted

USAGE_DETAIL = """commands:
  install    Apply patch and set up boot hook
  uninstall  Revert patch and remove boot hook (alias: remove)
  status     Check if patch is currently applied
"""

def build_parser(config: InstallerConfig) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=config.tool_name,
        usage="%(prog)s <install|uninstall|status>",
        description=f"{config.tool_name} {config.version}: patch vesmart-server to only "
                    "disconnect its own GATT clients",
        epilog=USAGE_DETAIL,
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("command", nargs="?", help=argparse.SUPPRESS)
    parser.add_argument("-v", "-V", "--version", action="version",
                        version=f"{config.tool_name} {config.version}")
    parser.add_argument("--root", metavar="PREFIX", default=None,
                        help="Operate on a staged filesystem tree instead of /")
    parser.add_argument("--debug", action="store_true",
                        help="Show patch and mount command output")
    return parser

def main(argv: Optional[List[str]] = None, config: Optional[InstallerConfig] = None,
         manager: Optional[BluetoothSafetyManager] = None) -> int:
    """
    Entry point for the installer.

    Returns:
        int: process exit status (0 success, 1 failure, 130 interrupted)
    """
    if argv is None:
        argv = sys.argv[1:]
    setup_logging()
    config = config or load_config()
    parser = build_parser(config)

    try:
        args, extra = parser.parse_known_args(argv)
    except SystemExit as e:
        # --help and --version exit 0, usage errors exit 2
        return 0 if not e.code else 1
    setup_logging(args.debug)

    if extra:
        log_message(f"Unknown command: {extra[0]}", "ERROR")
        log_message(f"Usage: {config.tool_name} <install|uninstall|status>", "ERROR")
        return 1

    if not args.command:
        parser.print_help()
        return 0

    if args.root:
        config = config.rebased(args.root)
    manager = manager or BluetoothSafetyManager(config)

    try:
        if args.command == "install":
            result = manager.install()
        elif args.command in ("uninstall", "remove"):
            result = manager.uninstall()
        elif args.command == "status":
            result = manager.status()
        else:
            log_message(f"Unknown command: {args.command}", "ERROR")
            log_message(f"Usage: {config.tool_name} <install|uninstall|status>", "ERROR")
            return 1
    except (KeyboardInterrupt, OperationInterrupted) as e:
        log_message(f"Interrupted ({e or 'keyboard interrupt'})", "WARNING")
        return 130

    return 0 if result.get("success", False) else 1

def run():
    """Console-script wrapper."""
    # daemontools and rc scripts may leave SIGPIPE ignored; restore the default.
    signal.signal(signal.SIGPIPE, signal.SIG_DFL)
    sys.exit(main())

if __name__ == "__main__":
    run()
