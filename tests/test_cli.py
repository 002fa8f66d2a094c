"""
Tests for the command-line surface and its exit codes.
"""

from pathlib import Path

import pytest

from bluetooth_safety.index import main
from bluetooth_safety.manager import BluetoothSafetyManager


@pytest.fixture
def manager(config, runner, patch_tool):
    return BluetoothSafetyManager(config, patch_tool=patch_tool, runner=runner, sleep=lambda s: None)


def test_version(capsys, config):
    for flag in ("--version", "-v", "-V"):
        assert main([flag], config=config) == 0
        assert capsys.readouterr().out.strip() == "victron-bluetooth-safety 1.0.0"


def test_help_without_arguments(capsys, config):
    assert main([], config=config) == 0
    out = capsys.readouterr().out
    assert "install" in out and "uninstall" in out and "status" in out


def test_help_flag(capsys, config):
    assert main(["--help"], config=config) == 0
    assert "usage: victron-bluetooth-safety" in capsys.readouterr().out


def test_unknown_command(capsys, config):
    assert main(["frobnicate"], config=config) == 1
    out = capsys.readouterr().out
    assert "Unknown command: frobnicate" in out
    assert "Usage:" in out


def test_unknown_option(capsys, config):
    assert main(["--frobnicate"], config=config) == 1
    assert "Unknown command: --frobnicate" in capsys.readouterr().out


def test_install_and_remove(config, manager):
    assert main(["install"], config=config, manager=manager) == 0
    assert main(["status"], config=config, manager=manager) == 0
    assert main(["remove"], config=config, manager=manager) == 0
    assert not config.rc_local.read_text().count("# victron-bluetooth-safety\n")


def test_install_failure_exit_code(config, manager):
    config.version_file.unlink()
    assert main(["install"], config=config, manager=manager) == 1
    assert main(["uninstall"], config=config, manager=manager) == 1
    assert main(["status"], config=config, manager=manager) == 0


def test_interrupt_exit_code(config, manager, monkeypatch):
    def interrupted():
        raise KeyboardInterrupt

    monkeypatch.setattr(manager, "install", interrupted)
    assert main(["install"], config=config, manager=manager) == 130


def test_config_load_warning_is_tagged(capsys, monkeypatch, tmp_path):
    monkeypatch.setattr("bluetooth_safety.config._INDEX_FILE", tmp_path / "missing.json")
    assert main([]) == 0
    out = capsys.readouterr().out
    assert f"[bt-safety] [WARNING] Failed to load {tmp_path / 'missing.json'}" in out
    assert "usage: victron-bluetooth-safety" in out


def test_sources_carry_apache_header():
    package = Path(__file__).resolve().parent.parent / "bluetooth_safety"
    for source in package.rglob("*.py"):
        if source.name == "__main__.py":
            continue
        head = source.read_text()[:800]
        assert "Copyright 2026 TechBlueprints" in head, source
        assert 'Licensed under the Apache License, Version 2.0 (the "License");' in head, source
        assert "GNU General Public License" not in source.read_text(), source
