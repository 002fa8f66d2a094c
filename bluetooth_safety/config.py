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
Configuration for the Bluetooth safety installer.

Shipped defaults live in index.json next to this file; the constants below are
the fallback when that file cannot be read.
"""

import json
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional
from .utils.index import log_message

TOOL_NAME = "victron-bluetooth-safety"
VERSION = "1.0.0"

VERSION_FILE = "/opt/victronenergy/version"
INSTALL_DIR = "/data/victron-bluetooth-safety"
VESMART_DIR = "/opt/victronenergy/vesmart-server"
RC_LOCAL = "/data/rc.local"
SERVICE_DIR = "/service/vesmart-server"
MOUNTS_FILE = "/proc/mounts"

# Application order; reversion walks this list backwards.
PATCH_FILES = ["gattserver.py.patch", "vesmart_server.py.patch"]
PROBE_FILE = "gattserver.py"
PATCH_SIGNATURE = "_gatt_clients"
RESTART_SETTLE_SECONDS = 2

_INDEX_FILE = Path(__file__).parent / "index.json"

@dataclass
class InstallerConfig:
    """Every location the installer reads or mutates."""
    version_file: Path = Path(VERSION_FILE)
    install_dir: Path = Path(INSTALL_DIR)
    vesmart_dir: Path = Path(VESMART_DIR)
    rc_local: Path = Path(RC_LOCAL)
    service_dir: Path = Path(SERVICE_DIR)
    mounts_file: Path = Path(MOUNTS_FILE)
    patch_files: List[str] = field(default_factory=lambda: list(PATCH_FILES))
    probe_file: str = PROBE_FILE
    patch_signature: str = PATCH_SIGNATURE
    restart_settle_seconds: float = RESTART_SETTLE_SECONDS
    # Working directory for the patch tool; patch documents carry paths relative to it.
    patch_root: Path = Path("/")
    tool_name: str = TOOL_NAME
    version: str = VERSION
    # Unrebased copy; what the device itself sees at boot.
    device: Optional['InstallerConfig'] = field(default=None, repr=False, compare=False)

    def on_device(self) -> 'InstallerConfig':
        return self.device or self

    @property
    def start_marker(self) -> str:
        return f"# {self.tool_name}"

    @property
    def end_marker(self) -> str:
        return f"# end {self.tool_name}"

    @property
    def probe_path(self) -> Path:
        return self.vesmart_dir / self.probe_file

    @property
    def patch_paths(self) -> List[Path]:
        return [self.install_dir / name for name in self.patch_files]

    def rebased(self, root: str) -> 'InstallerConfig':
        """Return a copy with every absolute path moved under root (staging trees, tests)."""
        root_path = Path(root)

        def under(p: Path) -> Path:
            return root_path / os.path.relpath(p, "/")

        return replace(
            self,
            version_file=under(self.version_file),
            install_dir=under(self.install_dir),
            vesmart_dir=under(self.vesmart_dir),
            rc_local=under(self.rc_local),
            service_dir=under(self.service_dir),
            patch_root=root_path,
            device=self.on_device(),
        )

def load_index(index_file: Optional[Path] = None) -> Dict[str, Any]:
    """Load the packaged index.json, returning {} when it is missing or invalid."""
    path = index_file or _INDEX_FILE
    try:
        with open(path, 'r') as f:
            return json.load(f)
    except Exception as e:
        log_message(f"Failed to load {path}: {e}", "WARNING")
        return {}

def load_config(index_file: Optional[Path] = None) -> InstallerConfig:
    """Build an InstallerConfig from index.json, falling back to the module defaults."""
    data = load_index(index_file)
    metadata = data.get("metadata", {})
    section = data.get("config", {})
    defaults = InstallerConfig()
    return InstallerConfig(
        version_file=Path(section.get("version_file", defaults.version_file)),
        install_dir=Path(section.get("install_dir", defaults.install_dir)),
        vesmart_dir=Path(section.get("vesmart_dir", defaults.vesmart_dir)),
        rc_local=Path(section.get("rc_local", defaults.rc_local)),
        service_dir=Path(section.get("service_dir", defaults.service_dir)),
        mounts_file=Path(section.get("mounts_file", defaults.mounts_file)),
        patch_files=list(section.get("patch_files", defaults.patch_files)),
        probe_file=section.get("probe_file", defaults.probe_file),
        patch_signature=section.get("patch_signature", defaults.patch_signature),
        restart_settle_seconds=section.get("restart_settle_seconds", defaults.restart_settle_seconds),
        tool_name=metadata.get("tool_name", defaults.tool_name),
        version=metadata.get("version", defaults.version),
    )
