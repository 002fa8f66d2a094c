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
Bluetooth safety manager.

Sequences the install, uninstall and status operations. Each step is
idempotent, so re-running a command is the retry mechanism; the manager never
retries by itself.
"""

from typing import Any, Callable, Dict, Optional
from .config import InstallerConfig, load_config
from .utils.index import BluetoothSafetyError, CommandRunner, log_message, run_command
from .utils.mount import RootMount, is_root_read_only
from .modules.venus import require_venus_os, get_firmware_version
from .modules.patches import (
    GnuPatchTool,
    PatchTool,
    is_patched,
    patch_artifacts_present,
    prepare_install_dir,
    apply_patches,
    revert_patches
)
from .modules.boothook import BootHookError, hook_installed, add_hook, remove_hook
from .modules.service import restart_service

class BluetoothSafetyManager:
    """Patch lifecycle manager for vesmart-server."""

    def __init__(self, config: Optional[InstallerConfig] = None, patch_tool: Optional[PatchTool] = None,
                 runner: Optional[CommandRunner] = None, sleep: Optional[Callable[[float], None]] = None):
        self.config = config or load_config()
        self.runner = runner or run_command
        self.patch_tool = patch_tool or GnuPatchTool(self.config.patch_root, runner=self.runner)
        self.sleep = sleep

    def _root_mount(self) -> RootMount:
        return RootMount(self.config.mounts_file, runner=self.runner)

    def _add_hook(self):
        try:
            add_hook(self.config)
        except BootHookError as e:
            log_message(str(e), "WARNING")

    def _remove_hook(self):
        try:
            remove_hook(self.config)
        except BootHookError as e:
            log_message(str(e), "WARNING")

    def _restart(self):
        try:
            restart_service(self.config, runner=self.runner, sleep=self.sleep)
        except Exception as e:
            log_message(f"Failed to restart vesmart-server: {e}", "WARNING")

    def install(self) -> Dict[str, Any]:
        """Apply the patches, register the boot hook and restart vesmart-server."""
        try:
            require_venus_os(self.config)
            prepare_install_dir(self.config)

            with self._root_mount():
                results = apply_patches(self.config, self.patch_tool)

        except BluetoothSafetyError as e:
            log_message(f"Install failed: {e}", "ERROR")
            return {"success": False, "error": str(e)}

        self._add_hook()
        self._restart()
        log_message("Install complete. Patch will be reapplied after firmware updates.")
        return {
            "success": True,
            "patches": {name: result.value for name, result in results.items()}
        }

    def uninstall(self) -> Dict[str, Any]:
        """Revert the patches, remove the boot hook and restart vesmart-server."""
        try:
            require_venus_os(self.config)

            with self._root_mount():
                results = revert_patches(self.config, self.patch_tool)

        except BluetoothSafetyError as e:
            log_message(f"Uninstall failed: {e}", "ERROR")
            return {"success": False, "error": str(e)}

        self._remove_hook()
        self._restart()
        log_message("Uninstall complete. Original vesmart-server behavior restored.")
        return {
            "success": True,
            "patches": {name: result.value for name, result in results.items()}
        }

    def status(self) -> Dict[str, Any]:
        """Report what is on disk right now. Read-only; works off Venus OS too."""
        patched = is_patched(self.config)
        hooked = hook_installed(self.config)
        artifacts = patch_artifacts_present(self.config)
        firmware = get_firmware_version(self.config)
        root_ro = is_root_read_only(self.config.mounts_file)

        if patched:
            log_message("ACTIVE: vesmart-server is patched (GATT-client-only disconnects)")
        else:
            log_message("INACTIVE: vesmart-server is unpatched (disconnects all devices)")

        if hooked:
            log_message(f"Boot hook: installed in {self.config.rc_local}")
        else:
            log_message("Boot hook: not installed")

        if artifacts:
            log_message(f"Patch files: present in {self.config.install_dir}")
        else:
            log_message(f"Patch files: NOT FOUND in {self.config.install_dir}")

        if firmware is not None:
            log_message(f"Venus OS firmware: v{firmware}")
        log_message(f"Root filesystem: {'read-only' if root_ro else 'read-write'}")

        return {
            "success": True,
            "patched": patched,
            "hook_installed": hooked,
            "artifacts_present": artifacts,
            "firmware_version": str(firmware) if firmware is not None else None,
            "root_read_only": root_ro
        }
