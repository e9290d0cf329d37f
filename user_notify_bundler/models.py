"""Per-target outcomes and the aggregate run report."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional


class TargetStage(str, enum.Enum):
    PENDING = "pending"
    BUILT = "built"
    PACKAGED = "packaged"
    SIGNED = "signed"
    VERIFIED = "verified"
    DONE = "done"


class TargetOutcome(str, enum.Enum):
    SUCCESS = "success"
    BUILD_FAILED = "build_failed"
    UNKNOWN_TARGET = "unknown_target"
    PACKAGE_FAILED = "package_failed"
    SIGN_FAILED = "sign_failed"
    VERIFY_FAILED = "verify_failed"
    SKIPPED = "skipped"

    @property
    def failed(self) -> bool:
        return self not in (TargetOutcome.SUCCESS, TargetOutcome.SKIPPED)


@dataclass(slots=True)
class TargetResult:
    name: str
    outcome: TargetOutcome = TargetOutcome.SKIPPED
    stage: TargetStage = TargetStage.PENDING
    bundle_id: Optional[str] = None
    binary_path: Optional[Path] = None
    package_path: Optional[Path] = None
    binary_sha256: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "name": self.name,
            "outcome": self.outcome.value,
            "stage": self.stage.value,
            "bundle_id": self.bundle_id,
            "binary_path": str(self.binary_path) if self.binary_path else None,
            "package_path": str(self.package_path) if self.package_path else None,
            "binary_sha256": self.binary_sha256,
            "error": self.error,
        }


@dataclass(slots=True)
class RunReport:
    signing_mode: str
    results: List[TargetResult] = field(default_factory=list)
    aborted: bool = False
    logs: List[str] = field(default_factory=list)
    next_steps: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return bool(self.results) and all(
            result.outcome is TargetOutcome.SUCCESS for result in self.results
        )

    @property
    def failures(self) -> List[TargetResult]:
        return [result for result in self.results if result.outcome.failed]

    def get(self, name: str) -> TargetResult:
        for result in self.results:
            if result.name == name:
                return result
        raise KeyError(f"No result recorded for target '{name}'.")

    def to_dict(self) -> Dict[str, object]:
        return {
            "success": self.success,
            "aborted": self.aborted,
            "signing_mode": self.signing_mode,
            "targets": [result.to_dict() for result in self.results],
            "logs": self.logs,
            "next_steps": self.next_steps,
        }
