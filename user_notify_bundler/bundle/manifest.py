"""Info.plist construction, template rendering and encoding."""

from __future__ import annotations

import plistlib
import re
from pathlib import Path
from typing import Any, Optional
from xml.parsers.expat import ExpatError

from pydantic import ValidationError

from ..errors import PackageError
from ..schemas.manifest import InfoPlist
from ..targets import DISPLAY_NAME

EXECUTABLE_TOKEN = "EXECUTABLE_NAME"
BUNDLE_ID_TOKEN = "BUNDLE_ID"
_TOKEN_PATTERN = re.compile(rf"({EXECUTABLE_TOKEN}|{BUNDLE_ID_TOKEN})")


def build_manifest(executable: str, bundle_id: str, *, display_name: str = DISPLAY_NAME) -> InfoPlist:
    """Return the default manifest for one package."""

    return InfoPlist(
        CFBundleIdentifier=bundle_id,
        CFBundleExecutable=executable,
        CFBundleName=display_name,
        CFBundleDisplayName=display_name,
    )


def load_template(path: Path) -> dict[str, Any]:
    """Parse a plist template into a dictionary."""

    try:
        with path.open("rb") as handle:
            payload = plistlib.load(handle)
    except FileNotFoundError as exc:
        raise PackageError(f"Manifest template not found: {path}") from exc
    except OSError as exc:
        raise PackageError(f"Manifest template unreadable: {path}: {exc}") from exc
    except (plistlib.InvalidFileException, ExpatError, ValueError) as exc:
        raise PackageError(f"Manifest template is not a valid plist: {path}: {exc}") from exc
    if not isinstance(payload, dict):
        raise PackageError(f"Manifest template must contain a dictionary: {path}")
    return payload


def render_template(template: dict[str, Any], executable: str, bundle_id: str) -> InfoPlist:
    """Substitute tokens in every string value of *template*.

    Each string is rewritten in a single pass, so substituted text is never
    scanned for tokens again.
    """

    values = {EXECUTABLE_TOKEN: executable, BUNDLE_ID_TOKEN: bundle_id}

    def substitute(node: Any) -> Any:
        if isinstance(node, str):
            return _TOKEN_PATTERN.sub(lambda match: values[match.group(1)], node)
        if isinstance(node, dict):
            return {key: substitute(value) for key, value in node.items()}
        if isinstance(node, list):
            return [substitute(item) for item in node]
        return node

    rendered = substitute(template)
    rendered["CFBundleIdentifier"] = bundle_id
    rendered["CFBundleExecutable"] = executable
    rendered.setdefault("CFBundleName", DISPLAY_NAME)
    rendered.setdefault("CFBundleDisplayName", rendered["CFBundleName"])
    try:
        return InfoPlist.model_validate(rendered)
    except ValidationError as exc:
        raise PackageError(f"Rendered manifest is invalid: {exc}") from exc


def render_manifest(
    executable: str,
    bundle_id: str,
    *,
    template_path: Optional[Path] = None,
) -> InfoPlist:
    if template_path is None:
        try:
            return build_manifest(executable, bundle_id)
        except ValidationError as exc:
            raise PackageError(f"Manifest is invalid: {exc}") from exc
    return render_template(load_template(template_path), executable, bundle_id)


def encode_manifest(manifest: InfoPlist) -> bytes:
    """Serialize to XML plist bytes; key order is sorted so output is stable."""

    return plistlib.dumps(manifest.to_plist(), fmt=plistlib.FMT_XML, sort_keys=True)


def dump_manifest(manifest: InfoPlist, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(encode_manifest(manifest))


def load_manifest(path: Path) -> InfoPlist:
    with path.open("rb") as handle:
        return InfoPlist.model_validate(plistlib.load(handle))
