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

import time
from typing import Callable, Optional
from ...config import InstallerConfig
from ...utils.index import CommandRunner, log_message, run_command

def restart_service(config: InstallerConfig, runner: Optional[CommandRunner] = None,
                    sleep: Optional[Callable[[float], None]] = None) -> bool:
    """
    Ask daemontools to restart vesmart-server so it reloads the patched sources.

    Best effort: every failure is a warning. Returns True if the restart signal
    was delivered.
    """
    runner = runner or run_command
    sleep = sleep or time.sleep

    if not config.service_dir.is_dir():
        log_message(f"{config.service_dir} not found, skipping restart")
        return False

    log_message("Restarting vesmart-server to pick up changes")
    result = runner(["svc", "-t", str(config.service_dir)])
    if result.returncode != 0:
        log_message(f"Failed to signal {config.service_dir}: {(result.stderr or '').strip()}", "WARNING")
        return False

    sleep(config.restart_settle_seconds)

    status = runner(["svstat", str(config.service_dir)])
    if status.returncode == 0 and status.stdout:
        log_message(status.stdout.strip())
    else:
        log_message(f"svstat unavailable for {config.service_dir}", "WARNING")
    return True
