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
vesmart-server patch lifecycle.

- is_patched: derive patch state from the gattserver.py source
- apply_patches / revert_patches: idempotent, ordered application through a PatchTool
- GnuPatchTool: the system patch(1) binary behind the PatchTool interface
"""

from .tool import PatchResult, PatchTool, GnuPatchTool, classify_patch_output
from .index import (
    PatchApplyError,
    MissingArtifactsError,
    is_patched,
    missing_artifacts,
    patch_artifacts_present,
    prepare_install_dir,
    apply_patches,
    revert_patches
)

__all__ = [
    'PatchResult',
    'PatchTool',
    'GnuPatchTool',
    'classify_patch_output',
    'PatchApplyError',
    'MissingArtifactsError',
    'is_patched',
    'missing_artifacts',
    'patch_artifacts_present',
    'prepare_install_dir',
    'apply_patches',
    'revert_patches'
]
