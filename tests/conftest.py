from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest

from user_notify_bundler.config import (
    ENV_EXAMPLES_ROOT,
    ENV_OUTPUT_DIR,
    ENV_TOOL_TIMEOUT,
    ENV_UNIFIED_BUNDLE_ID,
)
from user_notify_bundler.errors import BuildError, BundlerError, SignError, VerifyError
from user_notify_bundler.targets import DEFAULT_TARGET_SPECS, BuildTarget, build_targets, select_specs
from user_notify_bundler.tools import ToolResult, ToolRunner


@dataclass
class FakeToolRunner(ToolRunner):
    """Deterministic runner: writes a stub binary on compile, records every call."""

    failures: Dict[Tuple[str, str], str] = field(default_factory=dict)
    calls: List[Tuple[str, str]] = field(default_factory=list)
    name: str = "fake"

    def fail(self, op: str, target: str, message: str = "simulated failure") -> None:
        self.failures[(op, target)] = message

    def ops(self, op: str) -> List[str]:
        return [name for kind, name in self.calls if kind == op]

    def compile(self, target: BuildTarget) -> Path:
        self.calls.append(("compile", target.name))
        self._maybe_fail("compile", target.name, BuildError)
        target.binary_path.parent.mkdir(parents=True, exist_ok=True)
        target.binary_path.write_bytes(f"#!/bin/sh\necho {target.crate}\n".encode("utf-8"))
        return target.binary_path

    def sign(self, package_path: Path, identity: str) -> ToolResult:
        self.calls.append(("sign", package_path.stem))
        self._maybe_fail("sign", package_path.stem, SignError)
        signature = package_path / "Contents" / "_CodeSignature" / "CodeResources"
        signature.parent.mkdir(parents=True, exist_ok=True)
        signature.write_text(identity, encoding="utf-8")
        return ToolResult(command=["codesign", "--sign", identity, str(package_path)], returncode=0)

    def verify(self, package_path: Path) -> ToolResult:
        self.calls.append(("verify", package_path.stem))
        self._maybe_fail("verify", package_path.stem, VerifyError)
        return ToolResult(command=["codesign", "--verify", str(package_path)], returncode=0)

    def _maybe_fail(self, op: str, name: str, error: type[BundlerError]) -> None:
        message = self.failures.get((op, name))
        if message is not None:
            raise error(message, target=name)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in (ENV_EXAMPLES_ROOT, ENV_OUTPUT_DIR, ENV_UNIFIED_BUNDLE_ID, ENV_TOOL_TIMEOUT):
        monkeypatch.delenv(name, raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)


@pytest.fixture()
def fake_runner() -> FakeToolRunner:
    return FakeToolRunner()


@pytest.fixture()
def examples_root(tmp_path: Path) -> Path:
    root = tmp_path / "examples"
    for spec in DEFAULT_TARGET_SPECS:
        (root / spec.crate).mkdir(parents=True)
    return root


@pytest.fixture()
def make_targets(examples_root: Path):
    def _make(names: Optional[Sequence[str]] = None, *, output_dir: Optional[Path] = None) -> List[BuildTarget]:
        specs = select_specs(DEFAULT_TARGET_SPECS, names)
        return build_targets(specs, examples_root=examples_root, output_dir=output_dir)

    return _make
