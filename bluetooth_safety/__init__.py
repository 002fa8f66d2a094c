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

"""
Victron Bluetooth Safety

Patches vesmart-server on Venus OS so that its keep-alive timer only
disconnects devices that have actually interacted with the VE.Smart GATT
service (VictronConnect clients), instead of every BLE device on every
adapter. vesmart-server keeps running for VictronConnect while third-party
BLE connections (battery monitors, sensors) are left alone.

See: https://github.com/victronenergy/venus/issues/1587

The patch documents are stored on /data, which survives firmware updates, and
are reapplied on boot via /data/rc.local.

Usage:
    victron-bluetooth-safety install    # apply patch + set up rc.local
    victron-bluetooth-safety uninstall  # revert patch + remove rc.local hook
    victron-bluetooth-safety status     # check if patch is applied
"""

from .config import InstallerConfig, load_config, VERSION
from .utils.index import log_message, BluetoothSafetyError
from .manager import BluetoothSafetyManager
from .index import main

__version__ = VERSION

__all__ = [
    'InstallerConfig',
    'load_config',
    'log_message',
    'BluetoothSafetyError',
    'BluetoothSafetyManager',
    'main'
]
