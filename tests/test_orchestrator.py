"""Tests for build orchestration."""

import subprocess
import sys
from unittest.mock import patch

import pytest

from crossmake.catalog import TargetCatalog, default_catalog
from crossmake.errors import BuildFailed, InvocationError, ToolchainMissing, UnknownTarget, UnsupportedAction
from crossmake.invoker import BuildInvoker
from crossmake.orchestrator import BuildState, Orchestrator
from crossmake.resolver import ToolchainResolver
from crossmake.toolchain import NATIVE_TRIPLE, Profile, Target, ToolchainKind
from crossmake.toolchains.cargo import CargoToolchain
from crossmake.toolchains.cross import CrossToolchain

REAL_POPEN = subprocess.Popen


def _orchestrator(*installed, catalog=None):
    resolver = ToolchainResolver(
        {ToolchainKind.NATIVE: CargoToolchain(), ToolchainKind.CONTAINERIZED: CrossToolchain()},
        which=lambda cmd: f"/usr/bin/{cmd}" if cmd in installed else None,
    )
    return Orchestrator(
        catalog=catalog or default_catalog(),
        resolver=resolver,
        invoker=BuildInvoker(output_callback=None),
    )


def _child(code):
    """Popen stand-in that records the toolchain argv and runs `code` instead."""
    def fake_popen(cmd, **kwargs):
        return REAL_POPEN([sys.executable, "-c", code], **kwargs)
    return patch("crossmake.invoker.subprocess.Popen", side_effect=fake_popen)


class TestUnknownTarget:
    @pytest.mark.parametrize("name", ["windoes", "", "arm", "BUILD", "x86_64-pc-windows-gnu"])
    def test_no_spawn(self, name):
        with _child("pass") as spy:
            report = _orchestrator("cargo", "cross").run(name)
        spy.assert_not_called()
        assert isinstance(report.error, UnknownTarget)
        assert report.state is BuildState.FAILED
        assert report.exit_code == 1
        assert report.result is None

    def test_injected_catalog(self):
        catalog = TargetCatalog([Target("only", NATIVE_TRIPLE, Profile.DEBUG)])
        with _child("pass") as spy:
            report = _orchestrator("cargo", catalog=catalog).run("build")
        spy.assert_not_called()
        assert isinstance(report.error, UnknownTarget)


class TestToolchainMissing:
    @pytest.mark.parametrize("name", ["windows", "linux-arm"])
    def test_no_spawn(self, name):
        with _child("pass") as spy:
            report = _orchestrator("cargo").run(name)
        spy.assert_not_called()
        assert isinstance(report.error, ToolchainMissing)
        assert report.state is BuildState.FAILED
        assert report.exit_code == 2

    def test_linux_arm_without_cross(self):
        with _child("pass") as spy:
            report = _orchestrator("cargo", "docker").run("linux-arm")
        spy.assert_not_called()
        assert report.state is BuildState.FAILED
        assert report.error.kind == "toolchain-missing"
        assert report.exit_code == 2


class TestBuild:
    def test_windows_success(self):
        with _child("import time; time.sleep(0.05)") as spy:
            report = _orchestrator("cargo", "cross").run("windows")
        assert report.state is BuildState.COMPLETED
        assert report.ok is True
        assert report.exit_code == 0
        assert report.triple == "x86_64-pc-windows-gnu"
        assert spy.call_args.args[0] == [
            "cross", "build", "--target", "x86_64-pc-windows-gnu", "--profile", "release",
        ]

    def test_native_build_failed(self):
        code = "import sys; sys.stderr.write('error: could not compile `app`\\n'); sys.exit(101)"
        with _child(code):
            report = _orchestrator("cargo").run("build")
        assert report.state is BuildState.COMPLETED
        assert isinstance(report.error, BuildFailed)
        assert report.error.child_exit_code == 101
        assert report.exit_code == 1
        assert report.result.exit_code == 101
        assert "could not compile" in report.result.stderr_tail

    @pytest.mark.parametrize("name,profile", [("build", "dev"), ("release", "release")])
    def test_native_profile_flag(self, name, profile):
        with _child("pass") as spy:
            _orchestrator("cargo").run(name)
        cmd = spy.call_args.args[0]
        assert cmd.count("--profile") == 1
        assert "--release" not in cmd
        assert cmd[cmd.index("--profile") + 1] == profile

    def test_missing_cargo_is_invocation_error(self):
        def no_binary(cmd, **kwargs):
            raise FileNotFoundError(2, "No such file or directory", cmd[0])

        with patch("crossmake.invoker.subprocess.Popen", side_effect=no_binary):
            report = _orchestrator().run("build")
        assert isinstance(report.error, InvocationError)
        assert report.state is BuildState.COMPLETED
        assert report.exit_code == 1

    def test_report_to_dict(self):
        with _child("print('ok')"):
            data = _orchestrator("cargo").run("release").to_dict()
        assert data["ok"] is True
        assert data["state"] == "completed"
        assert data["result"]["target"]["profile"] == "release"
        assert data["error"] is None


class TestLifecycle:
    def test_list_targets_has_no_side_effects(self):
        with _child("pass") as spy:
            entries = _orchestrator().list_targets()
        spy.assert_not_called()
        assert [t.name for t in entries] == ["build", "release", "windows", "linux-arm"]

    def test_clean_twice(self):
        with _child("pass") as spy:
            orch = _orchestrator("cargo")
            first = orch.clean()
            second = orch.clean()
        assert first.ok and second.ok
        assert spy.call_count == 2
        assert spy.call_args.args[0] == ["cargo", "clean"]

    def test_run_app(self):
        with _child("print('hello from app')") as spy:
            report = _orchestrator("cargo").run_app()
        assert report.ok
        assert report.action == "run"
        assert spy.call_args.args[0] == ["cargo", "run", "--profile", "dev"]

    def test_install_cross_already_installed(self):
        with _child("pass") as spy:
            report = _orchestrator("cargo", "cross").install_cross()
        spy.assert_not_called()
        assert report.ok is True
        assert report.result is None

    def test_install_cross_runs_cargo_install(self):
        with _child("pass") as spy:
            report = _orchestrator("cargo").install_cross()
        assert report.ok is True
        assert spy.call_args.args[0][:3] == ["cargo", "install", "cross"]

    def test_install_cross_without_cargo(self):
        with _child("pass") as spy:
            report = _orchestrator().install_cross()
        spy.assert_not_called()
        assert isinstance(report.error, ToolchainMissing)
        assert report.state is BuildState.FAILED

    def test_install_cross_failure(self):
        with _child("import sys; sys.exit(1)"):
            report = _orchestrator("cargo").install_cross()
        assert isinstance(report.error, BuildFailed)
        assert report.exit_code == 1

    def test_no_retry_after_failure(self):
        with _child("import sys; sys.exit(101)") as spy:
            _orchestrator("cargo").run("build")
        assert spy.call_count == 1


class TestUnsupportedAction:
    @pytest.mark.parametrize("name,action", [("windows", "clean"), ("linux-arm", "run"), ("build", "bogus")])
    def test_reported_not_raised(self, name, action):
        with _child("pass") as spy:
            report = _orchestrator("cargo", "cross").run(name, action=action)
        spy.assert_not_called()
        assert isinstance(report.error, UnsupportedAction)
        assert report.state is BuildState.FAILED
        assert report.exit_code == 1
        assert report.to_dict()["error"]["error"] == "unsupported-action"
