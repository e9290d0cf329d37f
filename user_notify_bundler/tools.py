"""External toolchain, signer and verifier invocations."""

from __future__ import annotations

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence, Type

from .errors import BuildError, BundlerError, SignError, VerifyError
from .targets import BuildTarget

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ToolResult:
    command: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    logs: List[str] = field(default_factory=list)

    @property
    def output(self) -> str:
        return "\n".join(part for part in (self.stdout.strip(), self.stderr.strip()) if part)


class ToolRunner(ABC):
    """Capability used by the pipeline to reach external tools."""

    name: str

    @abstractmethod
    def compile(self, target: BuildTarget) -> Path:
        """Build *target* in release mode and return the binary path."""

    @abstractmethod
    def sign(self, package_path: Path, identity: str) -> ToolResult:
        """Sign *package_path* recursively with *identity*."""

    @abstractmethod
    def verify(self, package_path: Path) -> ToolResult:
        """Verify the signature of *package_path* recursively."""


class SubprocessToolRunner(ToolRunner):
    """Runs cargo and codesign as blocking subprocesses."""

    name = "subprocess"

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        cargo: str = "cargo",
        codesign: str = "codesign",
    ) -> None:
        self.timeout = timeout
        self.cargo = cargo
        self.codesign = codesign

    def compile(self, target: BuildTarget) -> Path:
        if not target.project_dir.is_dir():
            raise BuildError(f"Project directory not found: {target.project_dir}", target=target.name)
        result = self._run(
            [self.cargo, "build", "--release"],
            cwd=target.project_dir,
            error=BuildError,
            target=target.name,
        )
        if result.returncode != 0:
            raise BuildError(
                _failure_message("cargo build", result), target=target.name
            )
        if not target.binary_path.is_file():
            raise BuildError(
                f"cargo build succeeded but binary is missing: {target.binary_path}",
                target=target.name,
            )
        return target.binary_path

    def sign(self, package_path: Path, identity: str) -> ToolResult:
        target = package_path.stem
        result = self._run(
            [self.codesign, "--force", "--deep", "--sign", identity, str(package_path)],
            error=SignError,
            target=target,
        )
        if result.returncode != 0:
            raise SignError(_failure_message("codesign", result), target=target)
        return result

    def verify(self, package_path: Path) -> ToolResult:
        target = package_path.stem
        result = self._run(
            [self.codesign, "--verify", "--deep", "--strict", str(package_path)],
            error=VerifyError,
            target=target,
        )
        if result.returncode != 0:
            raise VerifyError(_failure_message("codesign --verify", result), target=target)
        # A clean verification prints nothing without --verbose.
        if result.output:
            raise VerifyError(
                f"codesign --verify reported diagnostics: {result.output}", target=target
            )
        return result

    def _run(
        self,
        cmd: Sequence[str],
        *,
        error: Type[BundlerError],
        target: str,
        cwd: Optional[Path] = None,
    ) -> ToolResult:
        command = [str(part) for part in cmd]
        rendered = shlex.join(command)
        logger.debug("$ %s%s", rendered, f" (cwd={cwd})" if cwd else "")
        try:
            proc = subprocess.run(
                command,
                cwd=cwd,
                check=False,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise error(f"Tool not found: {command[0]}", target=target) from exc
        except subprocess.TimeoutExpired as exc:
            raise error(f"'{rendered}' timed out after {self.timeout}s", target=target) from exc
        except OSError as exc:
            raise error(f"Unable to run {command[0]}: {exc}", target=target) from exc
        return ToolResult(
            command=command,
            returncode=proc.returncode,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            logs=[f"Executed: {rendered}"],
        )


def _failure_message(label: str, result: ToolResult) -> str:
    message = f"{label} exited with status {result.returncode}"
    if result.output:
        message += f": {result.output}"
    return message
