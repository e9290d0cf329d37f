"""Package assembly utilities."""

from .builder import assemble_package, package_layout
from .manifest import dump_manifest, encode_manifest, load_manifest, render_manifest

__all__ = [
    "assemble_package",
    "package_layout",
    "dump_manifest",
    "encode_manifest",
    "load_manifest",
    "render_manifest",
]
