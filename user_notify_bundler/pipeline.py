"""Sequential build, package, sign and verify orchestration."""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Optional, Sequence

from .bundle.builder import assemble_package
from .bundle.utils import compute_sha256
from .config import RunConfig, SigningMode
from .errors import BuildError, BundlerError, PackageError, SignError, UnknownTarget, VerifyError
from .models import RunReport, TargetOutcome, TargetResult, TargetStage
from .targets import BuildTarget, resolve_bundle_id
from .tools import ToolResult, ToolRunner

logger = logging.getLogger(__name__)

_OUTCOME_BY_STAGE = {
    BuildError.stage: TargetOutcome.BUILD_FAILED,
    UnknownTarget.stage: TargetOutcome.UNKNOWN_TARGET,
    PackageError.stage: TargetOutcome.PACKAGE_FAILED,
    SignError.stage: TargetOutcome.SIGN_FAILED,
    VerifyError.stage: TargetOutcome.VERIFY_FAILED,
}


def sign(package_path: Path, mode: SigningMode, runner: ToolRunner) -> Optional[ToolResult]:
    """Sign a package; a no-op when signing is disabled."""

    identity = mode.identity
    if identity is None:
        return None
    return runner.sign(package_path, identity)


def verify(package_path: Path, mode: SigningMode, runner: ToolRunner) -> Optional[ToolResult]:
    """Verify a package signature; a no-op when signing is disabled."""

    if mode is SigningMode.NONE:
        return None
    return runner.verify(package_path)


def run_all(targets: Sequence[BuildTarget], config: RunConfig, runner: ToolRunner) -> RunReport:
    """Process *targets* in order and return a report covering every target."""

    report = RunReport(signing_mode=config.signing_mode.value)
    remaining = list(targets)
    while remaining:
        target = remaining.pop(0)
        result, error = _run_target(target, config, runner, report)
        report.results.append(result)
        if error is None:
            continue

        report.logs.append(f"✖ {error.describe()}")
        logger.error("%s", error.describe())
        if remaining and _aborts_run(error, config):
            report.aborted = True
            report.logs.append(f"Aborting run; {len(remaining)} target(s) not attempted.")
            report.results.extend(TargetResult(name=skipped.name) for skipped in remaining)
            break

    report.next_steps = _next_steps(report, config)
    return report


def _run_target(
    target: BuildTarget,
    config: RunConfig,
    runner: ToolRunner,
    report: RunReport,
) -> tuple[TargetResult, Optional[BundlerError]]:
    result = TargetResult(name=target.name)
    mode = config.signing_mode
    try:
        logger.info("Building %s", target.name)
        report.logs.append(f"Building {target.name} ({target.crate})")
        result.binary_path = runner.compile(target)
        result.stage = TargetStage.BUILT

        result.bundle_id = resolve_bundle_id(target, config.unified_bundle_id)
        result.package_path = assemble_package(
            target,
            result.bundle_id,
            binary_path=result.binary_path,
            template_path=config.template_path,
        )
        result.stage = TargetStage.PACKAGED
        result.binary_sha256 = _packaged_checksum(target, result.package_path)
        report.logs.append(f"Packaged {target.name} -> {result.package_path} ({result.bundle_id})")

        signed = sign(result.package_path, mode, runner)
        result.stage = TargetStage.SIGNED
        verified = verify(result.package_path, mode, runner)
        result.stage = TargetStage.VERIFIED
        for tool_result in (signed, verified):
            if tool_result is not None:
                report.logs.extend(tool_result.logs)
        if mode is SigningMode.NONE:
            report.logs.append(f"Skipping signing for {target.name} (--no-sign)")
        else:
            report.logs.append(f"Signed and verified {target.name}")
    except BundlerError as exc:
        exc.target = exc.target or target.name
        result.outcome = _OUTCOME_BY_STAGE[exc.stage]
        result.error = str(exc)
        return result, exc

    result.stage = TargetStage.DONE
    result.outcome = TargetOutcome.SUCCESS
    return result, None

def _aborts_run(error: BundlerError, config: RunConfig) -> bool:
    if isinstance(error, BuildError):
        return True
    if config.keep_going:
        return False
    if isinstance(error, UnknownTarget):
        # Without signing an unresolvable id only spoils its own package.
        return config.signing_mode is not SigningMode.NONE
    return True


def _next_steps(report: RunReport, config: RunConfig) -> list[str]:
    steps: list[str] = []
    for result in report.results:
        if result.outcome is not TargetOutcome.SUCCESS or result.package_path is None:
            continue
        steps.append(f"open {shlex.quote(str(result.package_path))}")
        if config.signing_mode is SigningMode.NONE and result.binary_path is not None:
            steps.append(
                f"TEST_BUNDLE_ID={shlex.quote(result.bundle_id or '')} "
                f"{shlex.quote(str(result.binary_path))}"
            )
    if report.failures:
        steps.append("Fix the reported failures and rerun; existing packages are overwritten.")
    return steps


def _packaged_checksum(target: BuildTarget, package_path: Path) -> str:
    binary = package_path / "Contents" / "MacOS" / target.name
    try:
        return compute_sha256(binary)
    except OSError as exc:
        raise PackageError(f"Unable to checksum {binary}: {exc}", target=target.name) from exc
