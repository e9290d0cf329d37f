"""Schema exports for user_notify_bundler."""

from .manifest import InfoPlist
from .targets import TargetFile, TargetSpec

__all__ = ["InfoPlist", "TargetFile", "TargetSpec"]
