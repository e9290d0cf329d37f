"""Build targets and bundle id resolution."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import yaml
from pydantic import ValidationError

from .errors import UnknownTarget
from .schemas.targets import TargetFile, TargetSpec

UNIFIED_BUNDLE_ID = "ai.gety.user-notify.examples"
DISPLAY_NAME = "User Notify Test"

DEFAULT_TARGET_SPECS: tuple[TargetSpec, ...] = (
    TargetSpec(name="permission", crate="test_permission_request", bundle_id="ai.gety.test.permission"),
    TargetSpec(name="basic", crate="test_basic_notification", bundle_id="ai.gety.test.basic"),
    TargetSpec(name="interactive", crate="test_interactive_notification", bundle_id="ai.gety.test.interactive"),
    TargetSpec(name="active", crate="test_active_notifications", bundle_id="ai.gety.test.active"),
    TargetSpec(name="full", crate="test_full_integration", bundle_id="ai.gety.test.full"),
)

DEFAULT_BUNDLE_IDS: Dict[str, str] = {
    spec.name: spec.bundle_id for spec in DEFAULT_TARGET_SPECS if spec.bundle_id
}


@dataclass(frozen=True)
class BuildTarget:
    """One unit of work: a crate compiled and wrapped into ``<name>.app``."""

    name: str
    crate: str
    project_dir: Path
    binary_path: Path
    package_path: Path
    default_bundle_id: Optional[str] = None


def build_targets(
    specs: Sequence[TargetSpec],
    *,
    examples_root: Path,
    output_dir: Optional[Path] = None,
) -> List[BuildTarget]:
    """Expand target specs into concrete paths, preserving declared order."""

    targets: List[BuildTarget] = []
    for spec in specs:
        project_dir = examples_root / spec.crate
        release_dir = project_dir / "target" / "release"
        package_root = output_dir if output_dir is not None else release_dir
        targets.append(
            BuildTarget(
                name=spec.name,
                crate=spec.crate,
                project_dir=project_dir,
                binary_path=release_dir / spec.crate,
                package_path=package_root / f"{spec.name}.app",
                default_bundle_id=spec.bundle_id or DEFAULT_BUNDLE_IDS.get(spec.name),
            )
        )
    return targets


def resolve_bundle_id(target: BuildTarget, unified_override: Optional[str] = None) -> str:
    """Return the unified override when set, else the target's static default."""

    if unified_override:
        return unified_override
    if target.default_bundle_id:
        return target.default_bundle_id
    bundle_id = DEFAULT_BUNDLE_IDS.get(target.name)
    if not bundle_id:
        raise UnknownTarget(
            f"No default bundle id for target '{target.name}' and no unified override supplied.",
            target=target.name,
        )
    return bundle_id


def load_target_specs(path: Path) -> List[TargetSpec]:
    """Load target specs from a YAML file with a top-level ``targets`` list."""

    if not path.exists():
        raise FileNotFoundError(f"Targets file not found: {path}")
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Targets file is not valid YAML: {path}: {exc}") from exc
    try:
        document = TargetFile.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid targets file {path}: {exc}") from exc
    return list(document.targets)


def select_specs(specs: Sequence[TargetSpec], names: Optional[Sequence[str]]) -> List[TargetSpec]:
    """Restrict *specs* to *names*; declared order wins over selection order."""

    if not names:
        return list(specs)
    known = {spec.name for spec in specs}
    unknown = [name for name in names if name not in known]
    if unknown:
        available = ", ".join(spec.name for spec in specs)
        raise KeyError(f"Unknown target(s): {', '.join(unknown)}. Available targets: {available}.")
    wanted = set(names)
    return [spec for spec in specs if spec.name in wanted]
