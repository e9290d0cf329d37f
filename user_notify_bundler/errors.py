"""Error taxonomy for the bundle-and-sign run."""

from __future__ import annotations

from typing import Optional


class BundlerError(RuntimeError):
    """Base error; names the failing target and stage."""

    stage: str = "run"

    def __init__(self, message: str, *, target: Optional[str] = None) -> None:
        super().__init__(message)
        self.target = target

    def describe(self) -> str:
        if self.target:
            return f"[{self.target}] {self.stage} failed: {self}"
        return f"{self.stage} failed: {self}"


class BuildError(BundlerError):
    """Raised when the toolchain fails to produce a binary."""

    stage = "build"


class UnknownTarget(BundlerError):
    """Raised when no bundle id can be resolved for a target."""

    stage = "resolve"


class PackageError(BundlerError):
    """Raised when the package directory cannot be assembled."""

    stage = "package"


class SignError(BundlerError):
    """Raised when the signing tool fails."""

    stage = "sign"


class VerifyError(BundlerError):
    """Raised when signature verification fails or reports diagnostics."""

    stage = "verify"
