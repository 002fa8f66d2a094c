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

from pathlib import Path
from typing import Dict, List
from ...config import InstallerConfig
from ...utils.index import BluetoothSafetyError, log_message
from .tool import PatchResult, PatchTool

class PatchApplyError(BluetoothSafetyError):
    """A patch document could not be applied cleanly."""
    pass

class MissingArtifactsError(BluetoothSafetyError):
    """The patch documents are not in the install directory."""
    pass

def is_patched(config: InstallerConfig) -> bool:
    """
    Check whether vesmart-server already carries the patch.

    State is derived from the source file itself rather than a flag file, so it
    follows manual edits and partial failures. A missing or unreadable file
    counts as unpatched.
    """
    try:
        with open(config.probe_path, 'r', errors='replace') as f:
            return config.patch_signature in f.read()
    except OSError:
        return False

def missing_artifacts(config: InstallerConfig) -> List[Path]:
    return [p for p in config.patch_paths if not p.is_file()]

def patch_artifacts_present(config: InstallerConfig) -> bool:
    return not missing_artifacts(config)

def prepare_install_dir(config: InstallerConfig) -> None:
    """Create the persistent install directory and verify both patch documents are in it."""
    config.install_dir.mkdir(parents=True, exist_ok=True)

    missing = missing_artifacts(config)
    if missing:
        log_message(f"Patch files not found in {config.install_dir}: "
                    f"{', '.join(p.name for p in missing)}", "ERROR")
        log_message(f"Copy the patches/ directory contents to {config.install_dir} first.", "ERROR")
        raise MissingArtifactsError(f"Patch files not found in {config.install_dir}")

def apply_patches(config: InstallerConfig, tool: PatchTool) -> Dict[str, PatchResult]:
    """
    Apply every patch document in order.

    Stops at the first document that neither applies nor is already applied, so
    a failure on the first file never leaves the second one patched.

    Raises:
        PatchApplyError: a document conflicted or could not be read
    """
    if is_patched(config):
        log_message(f"Patch already applied to {config.probe_file}")
        return {}

    results = {}
    for document in config.patch_paths:
        log_message(f"Applying {document.name}")
        result = tool.apply(document, reverse=False)
        results[document.name] = result

        if result == PatchResult.ALREADY_APPLIED:
            log_message(f"{document.name} was already applied, skipping")
        elif not result.ok:
            log_message(f"Failed to apply {document.name} ({result.value})", "ERROR")
            raise PatchApplyError(f"Failed to apply {document.name}: {result.value}")

    log_message("Patches applied successfully")
    return results

def revert_patches(config: InstallerConfig, tool: PatchTool) -> Dict[str, PatchResult]:
    """
    Revert the patch documents in reverse order, best effort.

    Every document is attempted; failures are reported as warnings only.
    """
    if not is_patched(config):
        log_message("Patch not currently applied")
        return {}

    results = {}
    for document in reversed(config.patch_paths):
        log_message(f"Reverting {document.name}")
        result = tool.apply(document, reverse=True)
        results[document.name] = result
        if not result.ok:
            log_message(f"Failed to revert {document.name} ({result.value})", "WARNING")

    log_message("Patches reverted")
    return results
