"""The ``rst`` command: interactive front end for the rosetree pipeline."""

import argparse
import sys
from typing import List, Optional

from rich.markup import escape

from .console import ConsoleManager, setup_logging
from .errors import EmptySelection, FatalError, SelectionError
from .models import SkipRecord, display_label
from .rosetree import (
    RuleDiscovery,
    ScanResult,
    Timings,
    build_report,
    find_rule_files,
    scan,
    write_report,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rst",
        description=(
            "Scan a directory tree, pick text file types, and write the tree "
            "plus the selected file contents to one report."
        ),
    )
    parser.add_argument("root", nargs="?", default=".", help="directory to scan (default: .)")
    rules = parser.add_mutually_exclusive_group()
    rules.add_argument(
        "--ignore",
        dest="apply_ignore",
        action="store_true",
        default=None,
        help="apply .gitignore/.ignore rules without asking",
    )
    rules.add_argument(
        "--no-ignore",
        dest="apply_ignore",
        action="store_false",
        help="ignore the rule files without asking",
    )
    parser.add_argument(
        "-s",
        "--select",
        metavar="CHOICES",
        help="file types to extract: menu numbers or extensions, or 'a' for all",
    )
    parser.add_argument("-o", "--output-dir", default=".", help="where to write the report")
    parser.add_argument("-w", "--workers", type=int, help="worker threads (default: CPU count + 4)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def print_timings(console: ConsoleManager, timings: Timings):
    rows = [[label, f"{seconds * 1_000_000:,.0f}"] for label, seconds in timings.rows()]
    rows.append(["[bold]Total processing time[/bold]", f"[bold]{timings.total * 1_000_000:,.0f}[/bold]"])
    rows.append(["", f"{timings.total * 1000:,.0f} ms (approx total)"])
    console.print_table("Program Operation Execution Times (µs)", ["Stage", "Time"], rows)


def print_skipped(console: ConsoleManager, skipped: List[SkipRecord]):
    if not skipped:
        return
    rows = [[escape(r.path), r.stage, escape(r.reason)] for r in skipped]
    console.print_table("Skipped", ["Path", "Stage", "Reason"], rows)


def _ask_apply_rules(
    console: ConsoleManager, discovery: RuleDiscovery, preset: Optional[bool]
) -> bool:
    if preset is not None:
        return preset
    if not discovery.rule_files:
        return False
    console.console.print("\nFound the following ignore files:")
    for rel in discovery.relative_paths:
        console.console.print(f"  - {escape(rel)}")
    return console.confirm("Apply ignore rules?", default=True)


def _print_menu(console: ConsoleManager, result: ScanResult):
    rows = [
        [str(i), escape(display_label(ext)), str(len(result.groups[ext]))]
        for i, ext in enumerate(result.labels, start=1)
    ]
    console.print_table("Found the following UTF-8 file types", ["#", "Extension", "Files"], rows)


def run(args: argparse.Namespace, console: ConsoleManager) -> int:
    timings = Timings()
    console.log(f"Scanning {escape(str(args.root))} and subdirectories...")
    discovery = find_rule_files(args.root, timings=timings)
    apply_rules = _ask_apply_rules(console, discovery, args.apply_ignore)

    with console.status("Collecting files..."):
        result = scan(
            discovery.root,
            apply_rules,
            rule_files=discovery.rule_files,
            max_workers=args.workers,
            timings=timings,
        )

    if not result.groups:
        console.log("No UTF-8 readable files found.", style="yellow")
        print_skipped(console, result.skipped)
        print_timings(console, timings)
        return 0

    _print_menu(console, result)
    while True:
        raw = args.select
        if raw is None:
            raw = console.ask("Enter file type numbers to extract (space-separated, 'a' for all types)")
        try:
            with console.status("Reading selected files..."):
                outcome = build_report(result, raw, max_workers=args.workers, timings=timings)
            break
        except EmptySelection as e:
            console.log(str(e), style="yellow")
            print_timings(console, timings)
            return 0
        except SelectionError as e:
            console.log(escape(str(e)), style="bold red")
            if args.select is not None:
                return 2

    output_path = write_report(outcome.report, args.output_dir, timings=timings)
    failed = sum(1 for r in outcome.skipped if r.stage == "read")
    console.log(
        f"Successfully processed {outcome.files_read} files ({failed} failed)", style="green"
    )
    console.log(f"File contents successfully extracted to: {escape(str(output_path))}", style="bold green")
    print_skipped(console, outcome.skipped)
    print_timings(console, timings)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    console = ConsoleManager()
    setup_logging(args.verbose, console.console)
    try:
        return run(args, console)
    except FatalError as e:
        console.log(f"Error: {escape(str(e))}", style="bold red")
        return 1
    except (KeyboardInterrupt, EOFError):
        console.log("Interrupted.", style="yellow")
        return 130


if __name__ == "__main__":
    sys.exit(main())
