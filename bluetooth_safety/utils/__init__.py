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
Shared helpers for the Bluetooth safety installer.
"""

from .index import log_message, run_command, setup_logging, BluetoothSafetyError, CommandRunner, LOG_TAG
from .mount import RootMount, RemountError, OperationInterrupted, is_root_read_only, read_mount_options

__all__ = [
    'log_message',
    'run_command',
    'setup_logging',
    'BluetoothSafetyError',
    'CommandRunner',
    'LOG_TAG',
    'RootMount',
    'RemountError',
    'OperationInterrupted',
    'is_root_read_only',
    'read_mount_options'
]
