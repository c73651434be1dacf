"""Command line interface for packaging tkinter / customtkinter scripts.

``guibundler build`` resolves the toolkit's hidden imports and data files,
merges an optional YAML build file and then runs PyInstaller;
``guibundler describe`` prints the environment used for those decisions.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .bundler import DEFAULT_BUNDLER, describe_bundler, detect_bundler, find_bundler
from .command import build_config, format_command
from .config import describe_environment
from .errors import BuildCancelled, BuildTimeoutError, ConfigurationError, ExternalToolError
from .invoker import invoke
from .logging_utils import log_file_path, setup_logging
from .models import BuildTarget, ResourceMapping, ToolkitKind
from .overrides import BuildConfig, load_overrides
from .paths import PathConfig, resolve_path_config

EXIT_CONFIG_ERROR = 2
EXIT_TIMEOUT = 124
EXIT_CANCELLED = 130

logger = logging.getLogger(__name__)


def _mapping_arg(value: str) -> ResourceMapping:
    try:
        return ResourceMapping.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _positive_float(value: str) -> float:
    try:
        number = float(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"'{value}' is not a number") from exc
    if number <= 0:
        raise argparse.ArgumentTypeError("timeout must be positive")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="guibundler",
        description="Package tkinter/customtkinter scripts into standalone executables via PyInstaller.",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0, help="Increase log output (-vv for debug).")
    parser.add_argument(
        "--version",
        action="version",
        version=f"guibundler {__version__}",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    build = subparsers.add_parser("build", help="Resolve options and run the bundler.")
    build.add_argument("--script", required=True, help="GUI entry script (.py or .pyw).")
    build.add_argument(
        "--toolkit",
        required=True,
        choices=[kind.value for kind in ToolkitKind],
        help="plain = tkinter, extended = customtkinter.",
    )
    build.add_argument("--name", default=None, help="Executable name (default: script stem).")
    build.add_argument("--onefile", action="store_true", default=None, help="Bundle into a single file.")
    build.add_argument("--windowed", action="store_true", default=None, help="Suppress the console window.")
    build.add_argument("--icon", default=None, help="Icon file; also copied next to the executable.")
    build.add_argument(
        "--add-data",
        dest="add_data",
        action="append",
        default=[],
        type=_mapping_arg,
        metavar="SRC:DST",
        help="Extra file or directory to embed. Repeatable; order is kept.",
    )
    build.add_argument(
        "--hidden-import",
        dest="hidden_imports",
        action="append",
        default=[],
        metavar="MODULE",
        help="Additional module to force-include. Repeatable.",
    )
    build.add_argument(
        "--exclude-module",
        dest="excludes",
        action="append",
        default=[],
        metavar="MODULE",
        help="Module to leave out of the bundle. Repeatable.",
    )
    build.add_argument("--clean", action="store_true", default=None, help="Clear the bundler cache first.")
    build.add_argument("--distpath", default=None, help="Output directory for the bundle.")
    build.add_argument("--workpath", default=None, help="Directory for intermediate build files.")
    build.add_argument("--overrides", default=None, metavar="FILE.yaml", help="YAML build file merged over the defaults.")
    build.add_argument("--bundler", default=None, help="Explicit pyinstaller executable.")
    build.add_argument("--timeout", type=_positive_float, default=None, help="Maximum seconds to wait for the bundler.")
    build.add_argument("--dry-run", action="store_true", help="Print the command instead of running it.")
    build.add_argument("--quiet", action="store_true", help="Do not echo bundler output while it runs.")

    subparsers.add_parser("describe", help="Print environment info.")
    return parser


def _cli_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    values = {
        "name": args.name,
        "onefile": args.onefile,
        "windowed": args.windowed,
        "clean": args.clean,
        "icon": args.icon,
        "distpath": args.distpath,
        "workpath": args.workpath,
        "add_data": [{"src": str(m.source_path), "dst": m.dest_path} for m in args.add_data] or None,
    }
    return {key: value for key, value in values.items() if value is not None}


def resolve_config(args: argparse.Namespace, paths: PathConfig) -> BuildConfig:
    """Resolve the target, then apply the build file, then explicit flags.

    ``--add-data`` entries travel with the flags so they land after the build
    file's ``add_data`` and win on a shared destination.
    """

    target = BuildTarget(
        script_path=Path(args.script),
        toolkit_kind=ToolkitKind.parse(args.toolkit),
        extra_hidden_imports=frozenset(args.hidden_imports),
        excludes=frozenset(args.excludes),
        dist_dir=paths.dist_dir,
        work_dir=paths.work_dir,
    )
    config = BuildConfig.resolve(target)
    if args.overrides:
        config = config.merged(load_overrides(args.overrides))
    return config.merged(_cli_overrides(args))


def _run_build(args: argparse.Namespace, paths: PathConfig) -> int:
    try:
        config = resolve_config(args, paths)
        if args.dry_run and not args.bundler:
            # Printing the command must not need PyInstaller installed.
            bundler = detect_bundler() or DEFAULT_BUNDLER
        else:
            bundler = find_bundler(args.bundler)
        descriptor = build_config(config, bundler=bundler)
    except ConfigurationError as exc:
        logger.debug("Configuration failed", exc_info=True)
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    except FileNotFoundError as exc:
        print(f"Bundler error: {exc}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    if args.dry_run:
        print(format_command(descriptor))
        return 0

    on_output = None if args.quiet else print
    try:
        invoke(descriptor, timeout=args.timeout, on_output=on_output)
    except ExternalToolError as exc:
        if args.quiet:
            sys.stderr.write(exc.captured_output)
        print(f"Bundler failed with exit code {exc.exit_code}.", file=sys.stderr)
        print(f"Details: {log_file_path(paths.log_dir)}", file=sys.stderr)
        code = exc.exit_code
        return code if code and code > 0 else 1
    except BuildTimeoutError as exc:
        print(f"Timed out: {exc}", file=sys.stderr)
        return EXIT_TIMEOUT
    except BuildCancelled as exc:
        print(f"Cancelled: {exc}", file=sys.stderr)
        return EXIT_CANCELLED

    print(f"Built {config.target.output_name}")
    return 0


def _run_describe() -> int:
    print(describe_environment())
    bundler = detect_bundler()
    print(describe_bundler(bundler) if bundler else "pyinstaller=unset")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    paths = resolve_path_config()
    level = logging.WARNING - 10 * min(args.verbose, 2)
    setup_logging(level=level, log_dir=paths.log_dir)

    if args.command == "describe":
        return _run_describe()
    return _run_build(args, paths)


def entry_point() -> None:
    raise SystemExit(main())


if __name__ == "__main__":  # pragma: no cover
    entry_point()
