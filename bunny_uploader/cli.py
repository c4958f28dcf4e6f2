"""Command line interface for bunny_uploader."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import re
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import httpx

from . import __version__
from .cli_docs import generate_markdown_docs
from .cli_progress import FolderUploadProgressDisplay, echo, render_configuration_summary
from .errors import BunnyError, ConfigError, EnumerationError
from .models import (
    DEFAULT_MAX_ATTEMPTS,
    DEFAULT_RETRY_DELAY,
    DEFAULT_ZONE_HOST,
    CdnConfig,
    OrchestratorConfig,
    StorageConfig,
)
from .orchestrator import TreeEnumerator, UploadOrchestrator
from .utils.events import EventEmitter


PROG = "bunny-cli"
DEFAULT_CONCURRENCY = 10
DEFAULT_TIMEOUT = 10.0
DEFAULT_DOCS_DIR = "./docs"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|us|µs|ns|s|m|h)")
_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent or (not debug and not log_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    elif log_level:
        level = getattr(logging, log_level.upper(), logging.INFO)
    else:
        env_level = os.getenv("LOG_LEVEL")
        level = getattr(logging, (env_level or "INFO").upper(), logging.INFO)

    from rich.logging import RichHandler

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=True,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    return logging.getLevelName(level)


def _parse_duration(value: str) -> float:
    """
    Parse a duration into seconds.

    Accepts bare seconds ("2.5") or Go-style strings ("10s", "1m30s", "500ms").
    """
    text = str(value).strip()
    try:
        seconds = float(text)
    except ValueError:
        parts = _DURATION_PART.findall(text)
        if not parts or "".join(n + u for n, u in parts) != text:
            raise argparse.ArgumentTypeError(f"invalid duration: {value!r}")
        seconds = sum(float(number) * _DURATION_UNITS[unit] for number, unit in parts)
    if seconds < 0:
        raise argparse.ArgumentTypeError(f"duration must not be negative: {value!r}")
    return seconds


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _read_url_list(path: Path) -> List[str]:
    """Read one URL per line, skipping blank lines and # comments."""
    if not path.is_file():
        raise CLIError(f"URL list not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read URL list {path}: {exc}") from exc

    urls = []
    for raw_line in content.splitlines():
        line = raw_line.strip()
        if line and not line.startswith("#"):
            urls.append(line)
    if not urls:
        raise CLIError(f"no URLs found in {path}")
    return urls


def _count_files(folder: Path) -> Optional[int]:
    try:
        return TreeEnumerator(folder).count()
    except EnumerationError as exc:
        logging.getLogger(__name__).debug(f"Cannot count files: {exc}")
        return None


async def _cmd_upload_folder(args: argparse.Namespace) -> int:
    storage_config = StorageConfig.from_env(args.access_key, args.zone_name, args.zone_host)
    config = OrchestratorConfig(
        root_path=Path(args.folder).expanduser(),
        concurrency_limit=args.concurrency,
        attempt_timeout=args.timeout,
        max_attempts=args.retries,
        retry_delay=args.retry_delay,
        fail_fast=args.fail_fast,
    )

    total = _count_files(config.root_path)
    if not args.silent:
        render_configuration_summary(
            {
                "Folder": str(config.root_path),
                "Files": total if total is not None else "(unknown)",
                "Storage Zone": storage_config.zone_name,
                "Zone Host": storage_config.zone_host,
                "Concurrency": config.concurrency_limit,
                "Timeout": f"{config.attempt_timeout:g}s",
                "Attempts": config.max_attempts,
                "Retry Delay": f"{config.retry_delay:g}s",
                "Fail Fast": "yes" if config.fail_fast else "no",
                "Logging": args.log_mode,
            }
        )

    events = EventEmitter()
    display = FolderUploadProgressDisplay(total_files=total, quiet=args.silent)
    display.attach(events)
    display.start()
    try:
        async with UploadOrchestrator(storage_config=storage_config) as bunny:
            result = await bunny.upload_folder(config, events=events)
    finally:
        display.stop()

    if not result.success:
        print(f"ERROR: {result.error}", file=sys.stderr)
        return 1
    if not args.silent:
        echo("[green]Upload completed successfully![/green]")
    return 0


async def _cmd_upload_file(args: argparse.Namespace) -> int:
    storage_config = StorageConfig.from_env(args.access_key, args.zone_name, args.zone_host)
    path = Path(args.file).expanduser()
    if not path.is_file():
        raise CLIError(f"file does not exist: {path}")

    if not args.silent:
        echo(f"[cyan]Uploading:[/cyan] {path}")
    async with UploadOrchestrator(storage_config=storage_config) as bunny:
        outcome = await bunny.upload_file(
            path,
            dest=args.dest,
            attempt_timeout=args.timeout,
            max_attempts=args.retries,
            retry_delay=args.retry_delay,
        )

    if not outcome.success:
        print(
            f"ERROR: failed to upload {path} after {outcome.attempts} attempt(s): {outcome.cause}",
            file=sys.stderr,
        )
        return 1
    if not args.silent:
        echo(f"[green]Uploaded:[/green] {outcome.item.relative_path}")
    return 0


async def _cmd_purge_cache_full(args: argparse.Namespace) -> int:
    cdn_config = CdnConfig.from_env(args.api_key)
    if not args.silent:
        echo(f"Purging full cache for pull zone: {args.pull_zone}")
    async with UploadOrchestrator(cdn_config=cdn_config) as bunny:
        await bunny.purge_cache_full(args.pull_zone)
    if not args.silent:
        echo("[green]Cache purged successfully![/green]")
    return 0


async def _cmd_purge_cache_url(args: argparse.Namespace) -> int:
    cdn_config = CdnConfig.from_env(args.api_key)
    urls = _read_url_list(Path(args.file).expanduser())
    if not args.silent:
        echo(f"Purging cache for {len(urls)} URL(s) from: {args.file}")
    async with UploadOrchestrator(cdn_config=cdn_config) as bunny:
        purged = await bunny.purge_cache_urls(urls)
    if not args.silent:
        echo(f"[green]Purged {len(purged)} URL(s) successfully![/green]")
    return 0


def _add_storage_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-a",
        "--access-key",
        default=None,
        help="Storage access key (required; falls back to STORAGE_ACCESS_KEY)",
    )
    parser.add_argument(
        "-z",
        "--zone-name",
        default=None,
        help="Storage zone name (required; falls back to STORAGE_ZONE_NAME)",
    )
    parser.add_argument(
        "-H",
        "--zone-host",
        default=None,
        help=f"Storage zone host (default: STORAGE_ZONE_HOSTNAME or {DEFAULT_ZONE_HOST})",
    )


def _add_retry_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-t",
        "--timeout",
        type=_parse_duration,
        default=DEFAULT_TIMEOUT,
        help="Timeout for each upload attempt, e.g. 10s or 1m (default: 10s)",
    )
    parser.add_argument(
        "--retries",
        type=int,
        default=DEFAULT_MAX_ATTEMPTS,
        help=f"Attempts per file (default: {DEFAULT_MAX_ATTEMPTS})",
    )
    parser.add_argument(
        "--retry-delay",
        type=_parse_duration,
        default=DEFAULT_RETRY_DELAY,
        help="Fixed delay between attempts (default: 2s)",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=PROG,
        description="A CLI tool to upload files and purge caches using Bunny.net APIs.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file (default: ./.env if present)",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument("--version", action="version", version=f"{PROG} {__version__}")

    commands = parser.add_subparsers(dest="command", metavar="<command>")

    upload_folder = commands.add_parser(
        "upload-folder",
        help="Upload a folder concurrently",
        description=(
            "Upload all files in a folder concurrently using a worker pool "
            "with configurable concurrency, timeout and retry logic."
        ),
    )
    upload_folder.add_argument(
        "-f", "--folder", required=True, help="Path to the folder to upload (required)"
    )
    upload_folder.add_argument(
        "-c",
        "--concurrency",
        type=int,
        default=DEFAULT_CONCURRENCY,
        help=f"Number of concurrent workers (default: {DEFAULT_CONCURRENCY})",
    )
    upload_folder.add_argument(
        "-F",
        "--fail-fast",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Stop everything after the first file that exhausts its retries (default: on)",
    )
    _add_retry_arguments(upload_folder)
    _add_storage_arguments(upload_folder)
    upload_folder.set_defaults(handler=_cmd_upload_folder, command_parser=upload_folder)

    upload_file = commands.add_parser(
        "upload-file",
        help="Upload a single file",
        description="Upload a single file to a Bunny.net storage zone.",
    )
    upload_file.add_argument(
        "-f", "--file", required=True, help="Path to the file to upload (required)"
    )
    upload_file.add_argument(
        "-d",
        "--dest",
        default=None,
        help="Remote path inside the zone (default: the file name; trailing / keeps it)",
    )
    _add_retry_arguments(upload_file)
    _add_storage_arguments(upload_file)
    upload_file.set_defaults(handler=_cmd_upload_file, command_parser=upload_file)

    purge_full = commands.add_parser(
        "purge-cache-full",
        help="Purge the full pull zone cache",
        description="Purge the full cache for a specified pull zone in Bunny.net.",
    )
    purge_full.add_argument(
        "-p", "--pull-zone", required=True, help="ID of the pull zone to purge (required)"
    )
    purge_full.add_argument(
        "--api-key", default=None, help="Account API key (falls back to BUNNYCDN_API_KEY)"
    )
    purge_full.set_defaults(handler=_cmd_purge_cache_full, command_parser=purge_full)

    purge_url = commands.add_parser(
        "purge-cache-url",
        help="Purge cache for URLs listed in a file",
        description="Purge cache for specific URLs listed in a file, one per line.",
    )
    purge_url.add_argument(
        "-f",
        "--file",
        required=True,
        help="Path to the file containing URLs to purge (required)",
    )
    purge_url.add_argument(
        "--api-key", default=None, help="Account API key (falls back to BUNNYCDN_API_KEY)"
    )
    purge_url.set_defaults(handler=_cmd_purge_cache_url, command_parser=purge_url)

    docs = commands.add_parser(
        "gen-docs",
        help="Generate CLI documentation",
        description="Generate documentation for the CLI tool in Markdown format.",
    )
    docs.add_argument(
        "-o",
        "--output",
        type=Path,
        default=Path(DEFAULT_DOCS_DIR),
        help=f"Directory to write docs into (default: {DEFAULT_DOCS_DIR})",
    )
    docs.set_defaults(handler=None, command_parser=docs)

    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    args.log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "gen-docs":
        if not args.silent:
            echo("Generating documentation...")
        try:
            written = generate_markdown_docs(parser, args.output)
        except OSError as exc:
            print(f"Error generating documentation: {exc}", file=sys.stderr)
            return 1
        if not args.silent:
            echo(f"Documentation generated in {args.output} ({len(written)} files)")
        return 0

    try:
        return asyncio.run(args.handler(args))
    except ConfigError as exc:
        args.command_parser.print_usage(sys.stderr)
        print(f"{args.command_parser.prog}: error: {exc}", file=sys.stderr)
        return 2
    except (CLIError, BunnyError, httpx.HTTPError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
