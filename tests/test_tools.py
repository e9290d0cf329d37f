from __future__ import annotations

import subprocess
from pathlib import Path
from unittest import mock

import pytest

from user_notify_bundler.errors import BuildError, SignError, VerifyError
from user_notify_bundler.tools import SubprocessToolRunner


def _completed(cmd, returncode: int = 0, stdout: str = "", stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr=stderr)


def test_compile_runs_cargo_release(make_targets) -> None:
    (target,) = make_targets(["basic"])
    target.binary_path.parent.mkdir(parents=True)
    target.binary_path.write_bytes(b"bin")
    runner = SubprocessToolRunner()

    with mock.patch("subprocess.run", return_value=_completed(["cargo"])) as run:
        binary = runner.compile(target)

    assert binary == target.binary_path
    args, kwargs = run.call_args
    assert args[0] == ["cargo", "build", "--release"]
    assert kwargs["cwd"] == target.project_dir
    assert kwargs["timeout"] is None


def test_compile_nonzero_exit(make_targets) -> None:
    (target,) = make_targets(["basic"])
    runner = SubprocessToolRunner()

    with mock.patch("subprocess.run", return_value=_completed(["cargo"], 101, stderr="error[E0425]")):
        with pytest.raises(BuildError, match="status 101: error\\[E0425\\]") as excinfo:
            runner.compile(target)
    assert excinfo.value.target == "basic"


def test_compile_missing_binary_after_success(make_targets) -> None:
    (target,) = make_targets(["basic"])
    runner = SubprocessToolRunner()

    with mock.patch("subprocess.run", return_value=_completed(["cargo"])):
        with pytest.raises(BuildError, match="binary is missing"):
            runner.compile(target)


def test_compile_missing_toolchain(make_targets) -> None:
    (target,) = make_targets(["basic"])
    runner = SubprocessToolRunner(cargo="cargo-not-installed")

    with mock.patch("subprocess.run", side_effect=FileNotFoundError("cargo-not-installed")):
        with pytest.raises(BuildError, match="Tool not found"):
            runner.compile(target)


def test_sign_uses_ad_hoc_identity(tmp_path: Path) -> None:
    package = tmp_path / "basic.app"
    runner = SubprocessToolRunner(timeout=30)

    with mock.patch("subprocess.run", return_value=_completed(["codesign"])) as run:
        result = runner.sign(package, "-")

    args, kwargs = run.call_args
    assert args[0] == ["codesign", "--force", "--deep", "--sign", "-", str(package)]
    assert kwargs["timeout"] == 30
    assert result.returncode == 0


def test_sign_failure(tmp_path: Path) -> None:
    runner = SubprocessToolRunner()
    with mock.patch("subprocess.run", return_value=_completed(["codesign"], 1, stderr="no identity")):
        with pytest.raises(SignError) as excinfo:
            runner.sign(tmp_path / "basic.app", "-")
    assert excinfo.value.target == "basic"


def test_sign_timeout(tmp_path: Path) -> None:
    runner = SubprocessToolRunner(timeout=0.5)
    with mock.patch("subprocess.run", side_effect=subprocess.TimeoutExpired("codesign", 0.5)):
        with pytest.raises(SignError, match="timed out"):
            runner.sign(tmp_path / "basic.app", "-")


def test_verify_passes_silently(tmp_path: Path) -> None:
    package = tmp_path / "basic.app"
    runner = SubprocessToolRunner()
    with mock.patch("subprocess.run", return_value=_completed(["codesign"])) as run:
        runner.verify(package)
    assert run.call_args[0][0] == ["codesign", "--verify", "--deep", "--strict", str(package)]


def test_verify_diagnostics_fail(tmp_path: Path) -> None:
    runner = SubprocessToolRunner()
    diagnostic = "basic.app: a sealed resource is missing or invalid"
    with mock.patch("subprocess.run", return_value=_completed(["codesign"], 0, stderr=diagnostic)):
        with pytest.raises(VerifyError, match="sealed resource"):
            runner.verify(tmp_path / "basic.app")


def test_verify_nonzero_exit(tmp_path: Path) -> None:
    runner = SubprocessToolRunner()
    with mock.patch("subprocess.run", return_value=_completed(["codesign"], 3)):
        with pytest.raises(VerifyError, match="status 3"):
            runner.verify(tmp_path / "basic.app")


def test_compile_non_executable_toolchain(make_targets) -> None:
    (target,) = make_targets(["basic"])
    runner = SubprocessToolRunner()

    with mock.patch("subprocess.run", side_effect=PermissionError(13, "Permission denied")):
        with pytest.raises(BuildError, match="Unable to run cargo") as excinfo:
            runner.compile(target)
    assert excinfo.value.target == "basic"


def test_sign_bad_working_directory(tmp_path: Path) -> None:
    runner = SubprocessToolRunner()
    with mock.patch("subprocess.run", side_effect=NotADirectoryError(20, "Not a directory")):
        with pytest.raises(SignError, match="Unable to run codesign"):
            runner.sign(tmp_path / "basic.app", "-")


def test_tool_output_decoded_with_replacement(make_targets) -> None:
    (target,) = make_targets(["basic"])
    runner = SubprocessToolRunner()
    garbled = b"\xff\xfe bad".decode("utf-8", errors="replace")

    with mock.patch("subprocess.run", return_value=_completed(["cargo"], 101, stderr=garbled)) as run:
        with pytest.raises(BuildError, match="bad"):
            runner.compile(target)
    assert run.call_args[1]["errors"] == "replace"


def test_tool_writing_invalid_utf8_is_a_stage_error(make_targets, tmp_path: Path) -> None:
    (target,) = make_targets(["basic"])
    cargo = tmp_path / "fake-cargo"
    cargo.write_text("#!/bin/sh\nprintf '\\377\\376 bad' >&2\nexit 101\n", encoding="utf-8")
    cargo.chmod(0o755)
    runner = SubprocessToolRunner(cargo=str(cargo))

    with pytest.raises(BuildError, match="status 101") as excinfo:
        runner.compile(target)
    assert "�" in str(excinfo.value)
