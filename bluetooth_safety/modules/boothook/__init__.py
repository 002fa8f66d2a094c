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
rc.local boot hook.

/data/rc.local survives firmware updates and runs at every boot; the hook block
it carries re-applies the patches after the firmware has replaced /opt.
"""

from .index import BootHookError, hook_installed, render_hook_block, add_hook, remove_hook, strip_hook_lines

__all__ = [
    'BootHookError',
    'hook_installed',
    'render_hook_block',
    'add_hook',
    'remove_hook',
    'strip_hook_lines'
]
