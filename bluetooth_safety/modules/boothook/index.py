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

import os
from typing import List
from ...config import InstallerConfig
from ...utils.index import BluetoothSafetyError, log_message

class BootHookError(BluetoothSafetyError):
    """The startup script could not be updated."""
    pass

SHEBANG = "#!/bin/sh\n"

def _read_lines(config: InstallerConfig) -> List[str]:
    try:
        with open(config.rc_local, 'r') as f:
            return f.readlines()
    except FileNotFoundError:
        return []
    except OSError as e:
        raise BootHookError(f"Cannot read {config.rc_local}: {e}")

def hook_installed(config: InstallerConfig) -> bool:
    try:
        lines = _read_lines(config)
    except BootHookError:
        return False
    return any(line.strip() == config.start_marker for line in lines)

def render_hook_block(config: InstallerConfig) -> str:
    """
    Build the rc.local block that re-applies the patches on every boot.

    Firmware updates replace /opt wholesale, so the patches have to be put back
    from /data each time the system starts. Paths are the on-device ones even
    when the installer runs against a staged tree.
    """
    device = config.on_device()
    first_patch = device.patch_paths[0]
    lines = [
        config.start_marker,
        f"if [ -f {first_patch} ]; then",
        "    mount -o remount,rw / 2>/dev/null",
    ]
    for patch_path in device.patch_paths:
        lines.append(f"    (cd {device.patch_root} && patch -p1 -N < {patch_path}) >/dev/null 2>&1")
    lines += [
        "    mount -o remount,ro / 2>/dev/null",
        f"    svc -t {device.service_dir} 2>/dev/null",
        "fi",
        config.end_marker,
    ]
    return "\n".join(lines) + "\n"

def add_hook(config: InstallerConfig) -> bool:
    """
    Append the boot hook to rc.local unless it is already there.

    Returns:
        bool: True if the block was written, False if it was already present
    """
    if hook_installed(config):
        log_message("rc.local hook already present")
        return False

    log_message(f"Adding boot hook to {config.rc_local}")
    try:
        if not config.rc_local.exists():
            config.rc_local.parent.mkdir(parents=True, exist_ok=True)
            with open(config.rc_local, 'w') as f:
                f.write(SHEBANG)
            os.chmod(config.rc_local, 0o755)

        lines = _read_lines(config)
        with open(config.rc_local, 'a') as f:
            if lines and not lines[-1].endswith("\n"):
                f.write("\n")
            f.write(render_hook_block(config))
    except OSError as e:
        raise BootHookError(f"Failed to write {config.rc_local}: {e}")

    log_message("Boot hook added")
    return True

def strip_hook_lines(lines: List[str], start_marker: str, end_marker: str) -> List[str]:
    """Drop every start..end marker range, inclusive. An unterminated block runs to the end."""
    kept = []
    inside = False
    for line in lines:
        stripped = line.strip()
        if not inside and stripped == start_marker:
            inside = True
            continue
        if inside:
            if stripped == end_marker:
                inside = False
            continue
        kept.append(line)
    return kept

def remove_hook(config: InstallerConfig) -> bool:
    """
    Remove the boot hook block from rc.local.

    Returns:
        bool: True if a block was removed, False if none was present
    """
    if not hook_installed(config):
        log_message("No rc.local hook to remove")
        return False

    log_message(f"Removing boot hook from {config.rc_local}")
    lines = _read_lines(config)
    kept = strip_hook_lines(lines, config.start_marker, config.end_marker)
    try:
        with open(config.rc_local, 'w') as f:
            f.writelines(kept)
    except OSError as e:
        raise BootHookError(f"Failed to write {config.rc_local}: {e}")

    log_message("Boot hook removed")
    return True
