"""Run configuration built once from command-line flags and the environment."""

from __future__ import annotations

import enum
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

ENV_EXAMPLES_ROOT = "USER_NOTIFY_EXAMPLES_ROOT"
ENV_OUTPUT_DIR = "USER_NOTIFY_OUTPUT_DIR"
ENV_UNIFIED_BUNDLE_ID = "USER_NOTIFY_UNIFIED_BUNDLE_ID"
ENV_TOOL_TIMEOUT = "USER_NOTIFY_TOOL_TIMEOUT"


class SigningMode(str, enum.Enum):
    NONE = "none"
    AD_HOC = "ad-hoc"

    @property
    def identity(self) -> Optional[str]:
        """Identity passed to the signing tool; ``-`` is self-asserted."""

        return "-" if self is SigningMode.AD_HOC else None


@dataclass(frozen=True)
class RunConfig:
    """Immutable settings shared by every target in a run."""

    signing_mode: SigningMode = SigningMode.AD_HOC
    unified_bundle_id: Optional[str] = None
    examples_root: Path = Path(".")
    output_dir: Optional[Path] = None
    template_path: Optional[Path] = None
    keep_going: bool = False
    tool_timeout: Optional[float] = None

    def __post_init__(self) -> None:
        if self.unified_bundle_id is not None and not self.unified_bundle_id.strip():
            raise ValueError("Unified bundle id must not be empty.")
        if self.tool_timeout is not None and self.tool_timeout <= 0:
            raise ValueError(f"Tool timeout must be positive (got {self.tool_timeout}).")


@dataclass(frozen=True)
class EnvDefaults:
    examples_root: Optional[Path] = None
    output_dir: Optional[Path] = None
    unified_bundle_id: Optional[str] = None
    tool_timeout: Optional[float] = None


def load_env_defaults(
    env: Optional[Mapping[str, str]] = None,
    *,
    dotenv_path: Optional[Path] = None,
    include_timeout: bool = True,
) -> EnvDefaults:
    """Read configuration defaults from the environment.

    When *env* is omitted the process environment is used, after loading
    *dotenv_path* (or ``./.env``) without overriding variables already set.
    With *include_timeout* false the timeout variable is ignored, for callers
    that already have an explicit value.
    """

    if env is None:
        env_file = dotenv_path or Path.cwd() / ".env"
        if env_file.exists():
            load_dotenv(env_file, override=False)
        env = os.environ

    timeout_raw = (env.get(ENV_TOOL_TIMEOUT) or "").strip() if include_timeout else ""
    timeout: Optional[float] = None
    if timeout_raw:
        try:
            timeout = float(timeout_raw)
        except ValueError as exc:
            raise ValueError(f"{ENV_TOOL_TIMEOUT} must be a number (got '{timeout_raw}')") from exc

    return EnvDefaults(
        examples_root=_optional_path(env.get(ENV_EXAMPLES_ROOT)),
        output_dir=_optional_path(env.get(ENV_OUTPUT_DIR)),
        unified_bundle_id=(env.get(ENV_UNIFIED_BUNDLE_ID) or "").strip() or None,
        tool_timeout=timeout,
    )


def _optional_path(value: Optional[str]) -> Optional[Path]:
    if not value or not value.strip():
        return None
    return Path(value.strip())
