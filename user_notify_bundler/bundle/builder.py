"""Package assembly: ``<name>.app/Contents/{Info.plist,MacOS,Resources}``."""

from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Optional

from ..errors import PackageError
from ..targets import BuildTarget
from .manifest import dump_manifest, render_manifest
from .utils import copy_executable

logger = logging.getLogger(__name__)


def package_layout(package_path: Path) -> dict[str, Path]:
    contents = package_path / "Contents"
    return {
        "contents": contents,
        "macos": contents / "MacOS",
        "resources": contents / "Resources",
        "manifest": contents / "Info.plist",
    }


def assemble_package(
    target: BuildTarget,
    bundle_id: str,
    *,
    binary_path: Optional[Path] = None,
    template_path: Optional[Path] = None,
) -> Path:
    """Assemble ``target.package_path`` from the compiled binary and return it.

    Any previous package at the same path is replaced, so reruns produce the
    same tree.
    """

    source = binary_path or target.binary_path
    if not source.is_file():
        raise PackageError(f"Compiled binary not found: {source}", target=target.name)
    if target.package_path.suffix != ".app":
        raise PackageError(
            f"Package path must end with '.app': {target.package_path}", target=target.name
        )

    try:
        manifest = render_manifest(target.name, bundle_id, template_path=template_path)
    except PackageError as exc:
        exc.target = exc.target or target.name
        raise
    layout = package_layout(target.package_path)

    try:
        if target.package_path.exists():
            logger.debug("Removing previous package %s", target.package_path)
            shutil.rmtree(target.package_path)
        layout["macos"].mkdir(parents=True, exist_ok=True)
        layout["resources"].mkdir(parents=True, exist_ok=True)
        copy_executable(source, layout["macos"] / target.name)
        dump_manifest(manifest, layout["manifest"])
    except OSError as exc:
        raise PackageError(
            f"Unable to assemble {target.package_path}: {exc}", target=target.name
        ) from exc

    logger.info("Packaged %s as %s (%s)", target.name, target.package_path, bundle_id)
    return target.package_path
