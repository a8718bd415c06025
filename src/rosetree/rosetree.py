"""
The scan-classify-filter-report pipeline.

These functions form the boundary used by the command line (or any other
caller): find the rule files, scan, then build a report for a selection.
Each stage is timed into a shared :class:`Timings`.
"""

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import ClassVar, Dict, List, NamedTuple, Optional, Tuple

from .aggregate import aggregate
from .classify import classify
from .errors import FatalError
from .grouping import available_labels, group_by_extension, resolve_selection, selected_entries
from .ignore import IgnoreRuleSet, discover_rule_files
from .models import DEFAULT_ENCODING, ExtensionGroup, Report, ScanEntry, Selection, SkipRecord
from .render import assemble, output_filename, render_tree
from .walker import Classifier, walk

log = logging.getLogger(__name__)


@dataclass
class Timings:
    """Wall-clock seconds spent in each stage of a run."""

    STAGES: ClassVar[Tuple[Tuple[str, str], ...]] = (
        ("find_rule_files", "Find ignore files"),
        ("collect_files", "Collect files"),
        ("read_contents", "Read selected contents"),
        ("generate_tree", "Generate tree structure"),
        ("generate_output", "Generate output string"),
        ("write_file", "Write to file"),
    )

    find_rule_files: float = 0.0
    collect_files: float = 0.0
    read_contents: float = 0.0
    generate_tree: float = 0.0
    generate_output: float = 0.0
    write_file: float = 0.0

    @property
    def total(self) -> float:
        return sum(getattr(self, name) for name, _ in self.STAGES)

    @contextmanager
    def measure(self, stage: str):
        """Adds the time spent inside the block to *stage*."""
        start = time.perf_counter()
        try:
            yield
        finally:
            setattr(self, stage, getattr(self, stage) + time.perf_counter() - start)

    def rows(self) -> List[Tuple[str, float]]:
        return [(label, getattr(self, name)) for name, label in self.STAGES]


class RuleDiscovery(NamedTuple):
    root: Path
    rule_files: List[Path]

    @property
    def relative_paths(self) -> List[str]:
        return [p.relative_to(self.root).as_posix() for p in self.rule_files]


@dataclass
class ScanResult:
    """Everything the walk produced, ready for selection."""

    root: Path
    entries: Dict[str, ScanEntry]
    groups: Dict[str, ExtensionGroup]
    skipped: List[SkipRecord] = field(default_factory=list)
    rule_files: List[Path] = field(default_factory=list)
    ignore_rules_applied: bool = False
    timings: Timings = field(default_factory=Timings)

    @property
    def labels(self) -> List[str]:
        return available_labels(self.groups)


@dataclass
class ReportResult:
    report: Report
    selection: Selection
    files_read: int
    skipped: List[SkipRecord] = field(default_factory=list)
    timings: Timings = field(default_factory=Timings)


def _resolve_root(root) -> Path:
    root_dir = Path(root or ".").resolve()
    if not root_dir.is_dir():
        raise FatalError(f"Root directory '{root_dir}' not found or not a directory.")
    return root_dir


def find_rule_files(root=".", *, timings: Optional[Timings] = None) -> RuleDiscovery:
    """
    Validates *root* and lists its ignore-rule files.

    Raises:
        FatalError: If *root* is not an existing directory.
    """
    timings = timings if timings is not None else Timings()
    root_dir = _resolve_root(root)
    with timings.measure("find_rule_files"):
        rule_files = discover_rule_files(root_dir)
    log.debug("Found %d ignore files under %s", len(rule_files), root_dir)
    return RuleDiscovery(root_dir, rule_files)


def scan(
    root=".",
    apply_ignore_rules: bool = True,
    *,
    rule_files: Optional[List[Path]] = None,
    classifier: Classifier = classify,
    max_workers: Optional[int] = None,
    timings: Optional[Timings] = None,
) -> ScanResult:
    """
    Walks *root*, classifies every file and groups the text files.

    Args:
        root: The directory to scan.
        apply_ignore_rules (bool): Prune paths matched by ignore-rule files.
        rule_files (List[Path], optional): Rule files already found with
            :func:`find_rule_files`; discovered here when omitted.
        classifier (Callable): Sniffs one file.
        max_workers (int, optional): Thread pool size.
        timings (Timings, optional): Accumulates stage durations.

    Returns:
        ScanResult: Entries, extension groups and skip records.

    Raises:
        FatalError: If *root* is not an existing directory.
    """
    timings = timings if timings is not None else Timings()
    root_dir = _resolve_root(root)

    rules, skipped = None, []
    if apply_ignore_rules:
        if rule_files is None:
            rule_files = find_rule_files(root_dir, timings=timings).rule_files
        with timings.measure("find_rule_files"):
            rules = IgnoreRuleSet.load(root_dir, rule_files)
        skipped.extend(rules.warnings)

    with timings.measure("collect_files"):
        result = walk(root_dir, rules, classifier=classifier, max_workers=max_workers)
        groups = group_by_extension(result.entries.values())
    skipped.extend(result.skipped)

    return ScanResult(
        root=root_dir,
        entries=result.entries,
        groups=groups,
        skipped=skipped,
        rule_files=list(rule_files or []),
        ignore_rules_applied=apply_ignore_rules,
        timings=timings,
    )


def build_report(
    scan_result: ScanResult,
    selection_input: str,
    *,
    max_workers: Optional[int] = None,
    timings: Optional[Timings] = None,
) -> ReportResult:
    """
    Resolves the selection, reads the chosen files and assembles the report.

    The selection is resolved before any file is read, so an invalid
    selection never yields a partial report.

    Raises:
        SelectionError: If the selection is invalid or empty.
    """
    timings = timings if timings is not None else scan_result.timings
    selection = resolve_selection(scan_result.labels, selection_input)
    files = selected_entries(scan_result.groups, selection)

    with timings.measure("read_contents"):
        contents = aggregate(files, max_workers=max_workers)
    with timings.measure("generate_tree"):
        tree_text = render_tree(scan_result.entries.values())
    with timings.measure("generate_output"):
        report = assemble(tree_text, contents.records)

    return ReportResult(
        report=report,
        selection=selection,
        files_read=len(contents.records),
        skipped=scan_result.skipped + contents.skipped,
        timings=timings,
    )


def write_report(
    report: Report,
    output_dir=".",
    filename: Optional[str] = None,
    *,
    timings: Optional[Timings] = None,
) -> Path:
    """
    Saves *report* as a timestamped text file in *output_dir*.

    Raises:
        FatalError: If the file cannot be written.
    """
    timings = timings if timings is not None else Timings()
    output_path = Path(output_dir, filename or output_filename(report)).resolve()
    with timings.measure("write_file"):
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            with output_path.open("w", encoding=DEFAULT_ENCODING, newline="\n") as outfile:
                outfile.write(report.text)
        except OSError as e:
            raise FatalError(f"Failed to write output file {output_path}: {e}") from e
    return output_path


def generate_report(
    root=".",
    apply_ignore_rules: bool = True,
    selection_input: str = "a",
    *,
    max_workers: Optional[int] = None,
) -> ReportResult:
    """
    Runs the whole pipeline non-interactively.

    Args:
        root: The directory to scan.
        apply_ignore_rules (bool): Prune paths matched by ignore-rule files.
        selection_input (str): Menu indices and/or extensions separated by
            whitespace, or ``a`` for every text file type.
        max_workers (int, optional): Thread pool size.

    Returns:
        ReportResult: The report, the skip records and the stage timings.
    """
    timings = Timings()
    discovery = find_rule_files(root, timings=timings)
    scan_result = scan(
        discovery.root,
        apply_ignore_rules,
        rule_files=discovery.rule_files,
        max_workers=max_workers,
        timings=timings,
    )
    return build_report(scan_result, selection_input, max_workers=max_workers, timings=timings)
