"""
Tests for presence checks — precedence and short-circuiting.
"""

import shutil

import pytest

from newmachine.core.services.presence import probe_presence, read_version

from conftest import make_executable


def _no_lookup(*args, **kwargs):
    raise AssertionError("PATH lookup should not run")


class TestPrecedence:
    def test_fixed_path_wins(self, fake_runner, context, machine, monkeypatch):
        make_executable(machine.path(".local/bin/mise"))
        monkeypatch.setattr(shutil, "which", _no_lookup)

        probe = probe_presence(
            context, fake_runner,
            paths=["~/.local/bin/mise"], command="mise", version_cmd=["mise", "--version"],
        )

        assert probe.satisfied
        assert probe.via == "path"
        assert probe.detail == str(machine.path(".local/bin/mise"))
        assert fake_runner.calls == []

    def test_non_executable_file_is_not_present(self, fake_runner, context, machine):
        path = machine.path("tool")
        path.write_text("")
        path.chmod(0o644)

        assert not probe_presence(context, fake_runner, paths=["~/tool"]).satisfied

    def test_command_lookup_before_version_flag(self, fake_runner, context, machine):
        machine.add_command("gh")

        probe = probe_presence(context, fake_runner, command="gh", version_cmd=["gh", "--version"])

        assert probe.via == "command"
        assert fake_runner.calls == []

    def test_lookup_uses_context_path(self, fake_runner, context, tmp_path):
        make_executable(tmp_path / "elsewhere" / "gh")

        assert not probe_presence(context, fake_runner, command="gh").satisfied
        context.prepend_path(tmp_path / "elsewhere")
        assert probe_presence(context, fake_runner, command="gh").satisfied

    def test_version_flag_last(self, fake_runner, context):
        fake_runner.on("xcode-select", "-p", stdout="/Library/Developer/CommandLineTools\n")

        probe = probe_presence(context, fake_runner, command="nope", version_cmd=["xcode-select", "-p"])

        assert probe.via == "version"
        assert probe.detail == "/Library/Developer/CommandLineTools"
        assert fake_runner.calls[0].capture

    def test_any_version_satisfies(self, fake_runner, context):
        fake_runner.on("go", "version", stdout="go version go1.19 linux/amd64\n")

        probe = probe_presence(context, fake_runner, version_cmd=["go", "version"])

        assert probe.satisfied
        assert probe.version == "1.19"

    def test_nothing_found(self, fake_runner, context):
        probe = probe_presence(context, fake_runner, paths=["~/missing"], command="missing",
                               version_cmd=["missing", "--version"])
        assert not probe.satisfied
        assert probe.via == "none"

    @pytest.mark.parametrize("kind,make", [
        ("dir", lambda p: p.mkdir()),
        ("file", lambda p: p.write_text("x")),
    ])
    def test_path_kinds(self, fake_runner, context, machine, kind, make):
        make(machine.path("target"))
        assert probe_presence(context, fake_runner, paths=["~/target"], path_kind=kind).satisfied


def test_read_version_from_stderr(fake_runner, context):
    fake_runner.on("java", "-version", stderr='openjdk version "21.0.2" 2024-01-16\n')
    assert read_version(context, fake_runner, ["java", "-version"]) == "21.0.2"


def test_read_version_failure(fake_runner, context):
    assert read_version(context, fake_runner, ["nope", "--version"]) is None
