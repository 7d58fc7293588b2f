#!/usr/bin/env python3
"""
main.py – Java Runtime Finder
=============================
Entry point: lists the Java runtimes installed on this machine and
resolves the best one for a Java or Minecraft version.

Usage:
    java-finder                      # table of every runtime, newest first
    java-finder list --json
    java-finder best --java 17
    java-finder best --minecraft 1.20.4
    java-finder any
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from finder_config import FinderConfig, load_config
from java_manager import JavaManager
from java_runtime import JavaRuntime

logger = logging.getLogger("java_finder")

LOG_DIR = Path("logs")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


# ──────────────────────────────────────────────
#  Logging
# ──────────────────────────────────────────────

def setup_logging(level: str = "INFO", log_dir: Optional[Path] = LOG_DIR) -> None:
    """Log to logs/java_finder.log and to stderr."""
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers.insert(0, logging.FileHandler(log_dir / "java_finder.log", encoding="utf-8"))
        except OSError as exc:
            print(f"Cannot write logs to {log_dir}: {exc}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


# ──────────────────────────────────────────────
#  CLI
# ──────────────────────────────────────────────

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="java-finder",
        description="☕ Find installed Java runtimes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--config", default="config.json", help="Path to config.json")
    p.add_argument(
        "--add", action="append", default=[], metavar="PATH",
        help="Also consider the runtime at PATH (root, bin/ or java executable)",
    )
    p.add_argument("--json", action="store_true", help="Print JSON instead of a table")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    sub = p.add_subparsers(dest="command")
    sub.add_parser("list", help="List every runtime, newest first")
    sub.add_parser("any", help="Print the newest runtime")

    best = sub.add_parser("best", help="Best runtime for a version")
    target = best.add_mutually_exclusive_group(required=True)
    target.add_argument("--java", type=int, metavar="MAJOR", help="Java major version, e.g. 17")
    target.add_argument("--minecraft", metavar="VERSION", help="Minecraft version, e.g. 1.20.4")

    args = p.parse_args(argv)
    if args.command is None:
        args.command = "list"
    return args


# ──────────────────────────────────────────────
#  Output
# ──────────────────────────────────────────────

def render_table(runtimes: List[JavaRuntime], console: Console) -> None:
    t = Table(title="Java Runtimes")
    t.add_column("Version", style="cyan")
    t.add_column("Major", justify="right")
    t.add_column("Arch")
    t.add_column("Bundled")
    t.add_column("Source", style="magenta")
    t.add_column("Path", style="white")
    for rt in runtimes:
        t.add_row(
            rt.version or "?",
            str(rt.major_version) if rt.major_version is not None else "-",
            "64-bit" if rt.is_64bit else "32-bit",
            "✓" if rt.bundled else "",
            rt.source,
            rt.path,
        )
    console.print(t)


def print_runtimes(runtimes: List[JavaRuntime], as_json: bool, console: Console) -> None:
    if as_json:
        console.print_json(json.dumps([rt.to_dict() for rt in runtimes]))
    elif runtimes:
        render_table(runtimes, console)
    else:
        console.print("[bold red]No Java runtimes found[/]")


# ──────────────────────────────────────────────
#  Entry Point
# ──────────────────────────────────────────────

def run(args: argparse.Namespace, config: FinderConfig, console: Console) -> int:
    manager = JavaManager(config)
    if manager.probe is None:
        console.print("[bold red]This platform is not supported[/]")
        return 1

    for path in args.add:
        if manager.add_manual_runtime(path) is None:
            console.print(f"[yellow]⚠️  No Java runtime at {path}[/]")

    if args.command == "list":
        print_runtimes(manager.list_available(), args.json, console)
        return 0

    if args.command == "any":
        runtime = manager.find_any_runtime()
        label = "any version"
    elif args.java is not None:
        runtime = manager.find_best_runtime(args.java)
        label = f"Java {args.java}"
    else:
        runtime = manager.find_runtime_for_minecraft(args.minecraft)
        label = f"Minecraft {args.minecraft}"

    if runtime is None:
        console.print(f"[bold red]❌ No runtime found for {label}[/]")
        return 1

    if args.json:
        console.print_json(json.dumps(runtime.to_dict()))
    else:
        console.print(f"[bold green]✅ {label}:[/] {runtime}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    config = load_config(args.config)
    setup_logging("DEBUG" if args.verbose else config.log_level)
    logger.debug("Config: %s", config.to_dict())
    return run(args, config, Console())


if __name__ == "__main__":
    sys.exit(main())
