"""Command-line entry point for building and signing example app packages."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from .config import RunConfig, SigningMode, load_env_defaults
from .pipeline import run_all
from .schemas.targets import TargetSpec
from .targets import DEFAULT_TARGET_SPECS, UNIFIED_BUNDLE_ID, build_targets, load_target_specs, select_specs
from .tools import SubprocessToolRunner


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        env = load_env_defaults(include_timeout=args.timeout is None)
    except ValueError as exc:
        parser.error(str(exc))

    unified_bundle_id = _resolve_unified(args, env.unified_bundle_id, parser)
    specs = _resolve_specs(args, parser)

    examples_root = _resolve_dir(args.examples_root, env.examples_root) or Path.cwd()
    output_dir = _resolve_dir(args.output_dir, env.output_dir)
    template_path = Path(args.template).resolve() if args.template else None
    timeout = args.timeout if args.timeout is not None else env.tool_timeout

    try:
        config = RunConfig(
            signing_mode=SigningMode.NONE if args.no_sign else SigningMode.AD_HOC,
            unified_bundle_id=unified_bundle_id,
            examples_root=examples_root,
            output_dir=output_dir,
            template_path=template_path,
            keep_going=args.keep_going,
            tool_timeout=timeout,
        )
    except ValueError as exc:
        parser.error(str(exc))

    targets = build_targets(specs, examples_root=config.examples_root, output_dir=config.output_dir)
    runner = SubprocessToolRunner(timeout=config.tool_timeout)
    report = run_all(targets, config, runner)

    _print_json(report.to_dict())
    return 0 if report.success else 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="user-notify-bundle",
        description="Build, package and ad-hoc sign the user-notify example apps.",
    )
    parser.add_argument("--no-sign", action="store_true", help="Skip signing and verification.")
    unified = parser.add_mutually_exclusive_group()
    unified.add_argument(
        "--unified-bundle-id",
        metavar="ID",
        help="Use ID as the bundle id of every package.",
    )
    unified.add_argument(
        "--unified",
        action="store_true",
        help=f"Shorthand for --unified-bundle-id {UNIFIED_BUNDLE_ID}.",
    )
    parser.add_argument("--target", action="append", help="Target name to build (repeatable).")
    parser.add_argument("--targets-file", help="YAML file declaring the target list.")
    parser.add_argument("--examples-root", help="Directory holding the example crates.")
    parser.add_argument("--output-dir", help="Write packages here instead of each crate's target/release.")
    parser.add_argument("--template", help="Info.plist template with EXECUTABLE_NAME / BUNDLE_ID tokens.")
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue with later targets after a package, sign or verify failure.",
    )
    parser.add_argument("--timeout", type=float, help="Seconds allowed per external tool invocation.")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def _resolve_unified(
    args: argparse.Namespace,
    env_value: Optional[str],
    parser: argparse.ArgumentParser,
) -> Optional[str]:
    if args.unified_bundle_id is not None:
        value = args.unified_bundle_id.strip()
        if not value:
            parser.error("--unified-bundle-id must not be empty")
        return value
    if args.unified:
        return UNIFIED_BUNDLE_ID
    return env_value


def _resolve_specs(args: argparse.Namespace, parser: argparse.ArgumentParser) -> List[TargetSpec]:
    specs: Sequence[TargetSpec] = DEFAULT_TARGET_SPECS
    if args.targets_file:
        try:
            specs = load_target_specs(Path(args.targets_file))
        except (FileNotFoundError, ValueError) as exc:
            parser.error(str(exc))
    try:
        return select_specs(specs, args.target)
    except KeyError as exc:
        parser.error(str(exc.args[0]))


def _resolve_dir(value: Optional[str], fallback: Optional[Path]) -> Optional[Path]:
    if value:
        return Path(value).resolve()
    return fallback.resolve() if fallback else None


def _configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str, ensure_ascii=False))


if __name__ == "__main__":
    raise SystemExit(main())
