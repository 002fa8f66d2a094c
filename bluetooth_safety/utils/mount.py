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
Scoped read-write remount of the root filesystem.

Venus OS keeps / read-only. Anything that edits files under /opt has to open a
write window first and close it again on every exit path, but only if this
process opened it: a root that was already read-write is left alone.

Usage:
    with RootMount(config.mounts_file) as guard:
        ...mutate files...
    # guard.did_remount tells whether this run toggled the mode
"""

import signal
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from .index import BluetoothSafetyError, CommandRunner, log_message, run_command

class RemountError(BluetoothSafetyError):
    """The root filesystem could not be made writable."""
    pass

class OperationInterrupted(Exception):
    """A termination signal arrived while the root filesystem was writable."""

    def __init__(self, signum: int):
        self.signum = signum
        super().__init__(f"Interrupted by signal {signum}")

# Signals that would otherwise kill the process without unwinding.
GUARDED_SIGNALS = (signal.SIGTERM, signal.SIGHUP)
RESTORE_BLOCKED_SIGNALS = GUARDED_SIGNALS + (signal.SIGINT,)

def read_mount_options(mounts_file: Union[str, Path], mount_point: str = "/") -> Optional[list]:
    """
    Return the option list of the effective entry for mount_point.

    /proc/mounts may list / more than once (rootfs underneath the real root);
    the last entry is the one on top of the stack.
    """
    try:
        with open(mounts_file, 'r') as f:
            lines = f.readlines()
    except OSError as e:
        log_message(f"Cannot read mount table {mounts_file}: {e}", "WARNING")
        return None

    options = None
    for line in lines:
        fields = line.split()
        if len(fields) >= 4 and fields[1] == mount_point:
            options = fields[3].split(",")
    return options

def is_root_read_only(mounts_file: Union[str, Path], mount_point: str = "/") -> bool:
    options = read_mount_options(mounts_file, mount_point)
    return bool(options) and "ro" in options

class RootMount:
    """
    Guard object for the read-write window on the root filesystem.

    did_remount records whether acquire() performed the ro -> rw transition;
    release() only reverts in that case and then disarms itself.
    """

    def __init__(self, mounts_file: Union[str, Path] = "/proc/mounts", mount_point: str = "/",
                 runner: Optional[CommandRunner] = None):
        self.mounts_file = Path(mounts_file)
        self.mount_point = mount_point
        self.runner = runner or run_command
        self.did_remount = False
        self._saved_handlers: Dict[int, Callable] = {}

    def is_read_only(self) -> bool:
        return is_root_read_only(self.mounts_file, self.mount_point)

    def acquire(self) -> bool:
        """Make the root writable. Returns did_remount; raises RemountError on failure."""
        if not self.is_read_only():
            self.did_remount = False
            return False

        log_message("Remounting root filesystem read-write")
        result = self.runner(["mount", "-o", "remount,rw", self.mount_point])
        if result.returncode != 0:
            log_message("Failed to remount root read-write.", "WARNING")
            if result.stderr:
                log_message(result.stderr.strip(), "DEBUG")
            raise RemountError(f"Failed to remount {self.mount_point} read-write")

        self.did_remount = True
        return True

    def release(self) -> bool:
        """
        Put the root back to read-only if this guard made it writable.

        Failures are logged as warnings; the caller's outcome is not changed.
        Returns True when nothing needed restoring or restoring succeeded.
        """
        if not self.did_remount:
            return True

        log_message("Restoring root filesystem to read-only")
        # Held signals are delivered once the mask is restored, after the remount.
        previous_mask = signal.pthread_sigmask(signal.SIG_BLOCK, RESTORE_BLOCKED_SIGNALS)
        try:
            result = self.runner(["mount", "-o", "remount,ro", self.mount_point])
        finally:
            self.did_remount = False
            signal.pthread_sigmask(signal.SIG_SETMASK, previous_mask)
        if result.returncode != 0:
            log_message("Failed to restore root to read-only.", "WARNING")
            if result.stderr:
                log_message(result.stderr.strip(), "DEBUG")
            return False
        return True

    def _on_signal(self, signum, frame):
        raise OperationInterrupted(signum)

    def _install_signal_handlers(self):
        # signal.signal() only works from the main thread
        if threading.current_thread() is not threading.main_thread():
            return
        for signum in GUARDED_SIGNALS:
            self._saved_handlers[signum] = signal.signal(signum, self._on_signal)

    def _restore_signal_handlers(self):
        for signum, handler in self._saved_handlers.items():
            # None means the previous handler was not installed from Python
            signal.signal(signum, handler if handler is not None else signal.SIG_DFL)
        self._saved_handlers = {}

    def __enter__(self) -> 'RootMount':
        self._install_signal_handlers()
        try:
            self.acquire()
        except BaseException:
            self._restore_signal_handlers()
            raise
        return self

    def __exit__(self, exc_type, exc, tb):
        try:
            self.release()
        finally:
            self._restore_signal_handlers()
        return False
