"""Bundle-and-sign tooling for the user-notify example apps."""

__version__ = "0.1.0"
from .config import RunConfig, SigningMode
from .errors import BuildError, BundlerError, PackageError, SignError, UnknownTarget, VerifyError
from .models import RunReport, TargetOutcome, TargetResult, TargetStage
from .pipeline import run_all, sign, verify
from .targets import BuildTarget, build_targets, resolve_bundle_id
from .tools import SubprocessToolRunner, ToolResult, ToolRunner

__all__ = [
    "__version__",
    "BuildTarget",
    "build_targets",
    "resolve_bundle_id",
    "RunConfig",
    "SigningMode",
    "RunReport",
    "TargetOutcome",
    "TargetResult",
    "TargetStage",
    "run_all",
    "sign",
    "verify",
    "ToolRunner",
    "ToolResult",
    "SubprocessToolRunner",
    "BundlerError",
    "BuildError",
    "UnknownTarget",
    "PackageError",
    "SignError",
    "VerifyError",
]
