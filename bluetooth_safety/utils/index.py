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

import logging
import subprocess
import sys
from typing import Callable, List, Optional, Union

LOG_TAG = "[bt-safety]"
LOGGER_NAME = "bluetooth_safety"

# A runner takes an argv list and returns a CompletedProcess; tests swap in fakes.
CommandRunner = Callable[..., subprocess.CompletedProcess]

class BluetoothSafetyError(Exception):
    """Base class for every failure the installer reports."""
    pass

def setup_logging(debug: bool = False) -> logging.Logger:
    """
    Log to stdout only, every line carrying the tool's prefix tag.

    Safe to call more than once; existing handlers on the package logger are replaced.
    """
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    console_handler.setFormatter(logging.Formatter(f'{LOG_TAG} [%(levelname)s] %(message)s'))
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.addHandler(console_handler)
    logger.propagate = False
    return logger

def log_message(message: str, level: str = "INFO"):
    """Unified logger used by the installer and its helpers."""
    logger = logging.getLogger(LOGGER_NAME)
    if level == "ERROR":
        logger.error(message)
    elif level == "WARNING":
        logger.warning(message)
    elif level == "DEBUG":
        logger.debug(message)
    else:
        logger.info(message)

def run_command(command: List[str], cwd: Optional[str] = None, stdin: Optional[Union[str, bytes]] = None,
                timeout: int = 60) -> subprocess.CompletedProcess:
    """
    Run a command without raising on a non-zero exit.

    stdin may be bytes for input in an unknown encoding; output is then decoded
    leniently so callers always get text back.
    A missing binary is reported as exit status 127, the same way a shell would.
    """
    log_message(f"Running: {' '.join(command)}", "DEBUG")
    raw = isinstance(stdin, bytes)
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            input=stdin,
            capture_output=True,
            text=not raw,
            timeout=timeout,
            check=False
        )
    except FileNotFoundError as e:
        return subprocess.CompletedProcess(command, 127, stdout="", stderr=str(e))
    except subprocess.TimeoutExpired:
        return subprocess.CompletedProcess(command, 124, stdout="", stderr=f"timed out after {timeout}s")
    if raw:
        result.stdout = result.stdout.decode(errors="replace")
        result.stderr = result.stderr.decode(errors="replace")
    return result
