import subprocess
from dataclasses import replace
from pathlib import Path

import pytest

from bluetooth_safety.config import InstallerConfig
from bluetooth_safety.modules.patches import PatchResult, PatchTool
from bluetooth_safety.utils.index import setup_logging

VESMART_REL = "opt/victronenergy/vesmart-server"

GATTSERVER_ORIGINAL = "\n".join([
    "class GattServer:",
    "    def __init__(self):",
    "        self.connections = []",
    "",
    "    def disconnect_all(self):",
    "        for c in self.connections:",
    "            c.disconnect()",
]) + "\n"

GATTSERVER_PATCHED = "\n".join([
    "class GattServer:",
    "    def __init__(self):",
    "        self.connections = []",
    "        self._gatt_clients = set()",
    "",
    "    def disconnect_all(self):",
    "        for c in self._gatt_clients:",
    "            c.disconnect()",
]) + "\n"

GATTSERVER_PATCH = "\n".join([
    f"--- a/{VESMART_REL}/gattserver.py",
    f"+++ b/{VESMART_REL}/gattserver.py",
    "@@ -1,7 +1,8 @@",
    " class GattServer:",
    "     def __init__(self):",
    "         self.connections = []",
    "+        self._gatt_clients = set()",
    " ",
    "     def disconnect_all(self):",
    "-        for c in self.connections:",
    "+        for c in self._gatt_clients:",
    "             c.disconnect()",
]) + "\n"

VESMART_ORIGINAL = "\n".join([
    "KEEPALIVE_SECONDS = 60",
    "",
    "",
    "def on_keepalive_timeout(server):",
    "    server.disconnect_all()",
]) + "\n"

VESMART_PATCHED = "\n".join([
    "KEEPALIVE_SECONDS = 60",
    "",
    "",
    "def on_keepalive_timeout(server):",
    "    server.disconnect_gatt_clients()",
]) + "\n"

VESMART_PATCH = "\n".join([
    f"--- a/{VESMART_REL}/vesmart_server.py",
    f"+++ b/{VESMART_REL}/vesmart_server.py",
    "@@ -4,2 +4,2 @@",
    " def on_keepalive_timeout(server):",
    "-    server.disconnect_all()",
    "+    server.disconnect_gatt_clients()",
]) + "\n"

# patch document -> (target file, unpatched text, patched text)
PATCH_TABLE = {
    "gattserver.py.patch": ("gattserver.py", GATTSERVER_ORIGINAL, GATTSERVER_PATCHED),
    "vesmart_server.py.patch": ("vesmart_server.py", VESMART_ORIGINAL, VESMART_PATCHED),
}

RC_LOCAL_EXISTING = "#!/bin/sh\n# start the data logger\n/data/logger.sh &\n"

def mounts_table(mode):
    return (
        "rootfs / rootfs rw 0 0\n"
        f"/dev/root / ext4 {mode},relatime 0 0\n"
        "/dev/mmcblk0p4 /data ext4 rw,noatime 0 0\n"
    )

class FakeRunner:
    """Stands in for run_command: records argv lists and emulates mount/svc/svstat."""

    def __init__(self, mounts_file, fail=()):
        self.mounts_file = Path(mounts_file)
        self.fail = set(fail)
        self.calls = []

    def _result(self, command, returncode=0, stdout="", stderr=""):
        return subprocess.CompletedProcess(command, returncode, stdout=stdout, stderr=stderr)

    def __call__(self, command, cwd=None, stdin=None, timeout=60):
        self.calls.append(list(command))
        key = " ".join(command[:3])
        if key in self.fail or command[0] in self.fail:
            return self._result(command, 1, stderr=f"{command[0]}: operation failed")

        if command[:3] == ["mount", "-o", "remount,rw"]:
            self.mounts_file.write_text(mounts_table("rw"))
        elif command[:3] == ["mount", "-o", "remount,ro"]:
            self.mounts_file.write_text(mounts_table("ro"))
        elif command[0] == "svstat":
            return self._result(command, stdout=f"{command[1]}: up (pid 1234) 2 seconds\n")
        return self._result(command)

    def mount_calls(self):
        return [c for c in self.calls if c[0] == "mount"]

class FakePatchTool(PatchTool):
    """In-memory patch(1): swaps whole-file contents according to PATCH_TABLE."""

    def __init__(self, vesmart_dir, conflict=()):
        self.vesmart_dir = Path(vesmart_dir)
        self.conflict = set(conflict)
        self.calls = []

    def apply(self, document, reverse=False):
        document = Path(document)
        self.calls.append((document.name, reverse))
        if not document.is_file():
            return PatchResult.IO_ERROR
        if document.name in self.conflict:
            return PatchResult.CONFLICT

        target_name, before, after = PATCH_TABLE[document.name]
        if reverse:
            before, after = after, before
        target = self.vesmart_dir / target_name
        if not target.is_file():
            return PatchResult.IO_ERROR

        content = target.read_text()
        if content == after:
            return PatchResult.ALREADY_APPLIED
        if content != before:
            return PatchResult.CONFLICT
        target.write_text(after)
        return PatchResult.APPLIED

@pytest.fixture(autouse=True)
def _logging():
    # Rebind the stdout handler to the stream pytest is capturing for this test.
    setup_logging(debug=True)

@pytest.fixture
def venus_root(tmp_path):
    """A staged Venus OS tree with a read-only root and the patch documents in /data."""
    (tmp_path / "opt/victronenergy").mkdir(parents=True)
    (tmp_path / "opt/victronenergy/version").write_text("v3.14\n20240115120000 v3.14\n")

    vesmart = tmp_path / VESMART_REL
    vesmart.mkdir(parents=True)
    (vesmart / "gattserver.py").write_text(GATTSERVER_ORIGINAL)
    (vesmart / "vesmart_server.py").write_text(VESMART_ORIGINAL)

    install_dir = tmp_path / "data/victron-bluetooth-safety"
    install_dir.mkdir(parents=True)
    (install_dir / "gattserver.py.patch").write_text(GATTSERVER_PATCH)
    (install_dir / "vesmart_server.py.patch").write_text(VESMART_PATCH)

    (tmp_path / "service/vesmart-server").mkdir(parents=True)
    (tmp_path / "proc").mkdir()
    (tmp_path / "proc/mounts").write_text(mounts_table("ro"))
    return tmp_path

@pytest.fixture
def config(venus_root):
    return replace(
        InstallerConfig().rebased(str(venus_root)),
        mounts_file=venus_root / "proc/mounts",
        restart_settle_seconds=0,
    )

@pytest.fixture
def runner(config):
    return FakeRunner(config.mounts_file)

@pytest.fixture
def patch_tool(config):
    return FakePatchTool(config.vesmart_dir)
