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
Patch tool abstraction.

The installer never edits vesmart-server sources itself; it hands the patch
documents to a text-patching tool and only needs to know which of four things
happened. GnuPatchTool drives the system `patch` binary the same way the boot
hook does, so an install and a reboot re-apply behave identically.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from ...utils.index import CommandRunner, log_message, run_command

class PatchResult(Enum):
    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    CONFLICT = "conflict"
    IO_ERROR = "io_error"

    @property
    def ok(self) -> bool:
        return self in (PatchResult.APPLIED, PatchResult.ALREADY_APPLIED)

class PatchTool:
    """Capability interface: apply(document, reverse) -> PatchResult."""

    def apply(self, document: Union[str, Path], reverse: bool = False) -> PatchResult:
        raise NotImplementedError

# Markers in patch(1) output, lower-cased.
_ALREADY_MARKERS = (
    "reversed (or previously applied) patch detected",
    "unreversed patch detected",
    "already applied",
)
_IO_MARKERS = (
    "can't find file to patch",
    "no such file or directory",
    "can't open",
    "permission denied",
    "read-only file system",
)

class GnuPatchTool(PatchTool):
    """Run `patch -p1 -N` / `patch -p1 -R` from the filesystem root."""

    def __init__(self, root: Union[str, Path] = "/", strip: int = 1,
                 runner: Optional[CommandRunner] = None, binary: str = "patch"):
        self.root = Path(root)
        self.strip = strip
        self.runner = runner or run_command
        self.binary = binary

    def build_command(self, reverse: bool = False) -> List[str]:
        return [self.binary, f"-p{self.strip}", "-R" if reverse else "-N"]

    def apply(self, document: Union[str, Path], reverse: bool = False) -> PatchResult:
        document = Path(document)
        try:
            content = document.read_bytes()
        except OSError as e:
            log_message(f"Cannot read patch document {document}: {e}", "ERROR")
            return PatchResult.IO_ERROR

        result = self.runner(self.build_command(reverse), cwd=str(self.root), stdin=content)
        output = f"{result.stdout or ''}\n{result.stderr or ''}"
        if output.strip():
            log_message(f"patch output for {document.name}:\n{output.strip()}", "DEBUG")

        return classify_patch_output(result.returncode, output)

def classify_patch_output(returncode: int, output: str) -> PatchResult:
    """Map a patch(1) exit status and its combined output onto a PatchResult."""
    if returncode == 0:
        return PatchResult.APPLIED
    if returncode == 127:
        return PatchResult.IO_ERROR

    lowered = output.lower()
    if any(marker in lowered for marker in _IO_MARKERS):
        return PatchResult.IO_ERROR
    # Skipped hunks are fine, but a single FAILED hunk means a partial application.
    if any(marker in lowered for marker in _ALREADY_MARKERS) and "failed" not in lowered:
        return PatchResult.ALREADY_APPLIED
    return PatchResult.CONFLICT
