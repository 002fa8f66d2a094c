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

from typing import Optional
from packaging import version
from ...config import InstallerConfig
from ...utils.index import BluetoothSafetyError, log_message

class PlatformError(BluetoothSafetyError):
    """The host is not a Venus OS system."""
    pass

def is_venus_os(config: InstallerConfig) -> bool:
    return config.version_file.is_file()

def require_venus_os(config: InstallerConfig) -> None:
    """Raise PlatformError unless the Venus OS version file is present."""
    if not is_venus_os(config):
        raise PlatformError("This does not appear to be a Venus OS system.")

def get_firmware_version(config: InstallerConfig) -> Optional[version.Version]:
    """
    Parse the firmware release from the first line of the version file.

    Venus OS writes e.g. "v3.14" followed by a build timestamp line.

    Returns:
        Version or None if the file is missing or the release is not parseable
    """
    try:
        with open(config.version_file, 'r') as f:
            first_line = f.readline().strip()
    except OSError:
        return None

    if not first_line:
        return None

    try:
        return version.parse(first_line.lstrip("vV"))
    except version.InvalidVersion:
        log_message(f"Unrecognised firmware version string: {first_line}", "DEBUG")
        return None
