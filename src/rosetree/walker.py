"""
Concurrent directory traversal.

Directory expansion and file classification are separate tasks on one
thread pool. Workers record their results straight into lock-guarded
collections; the submitting thread only dispatches follow-up tasks. The
result is unordered, callers sort with :func:`rosetree.models.sort_key`.
"""

import logging
import os
import threading
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from pathlib import Path
from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from .classify import Classification, classify, extension_of
from .errors import ClassifyError, FatalError
from .ignore import ALWAYS_SKIPPED_NAMES, IgnoreRuleSet
from .models import ScanEntry, SkipRecord, sort_key

log = logging.getLogger(__name__)

Classifier = Callable[[Path], Classification]


def default_workers() -> int:
    return (os.cpu_count() or 1) + 4


class EntryRegistry:
    """A thread-safe mapping of relative path to :class:`ScanEntry`."""

    def __init__(self):
        self._lock = threading.Lock()
        self._entries: Dict[str, ScanEntry] = {}

    def add(self, entry: ScanEntry) -> bool:
        """Inserts *entry* unless its path is already known; returns True if inserted."""
        with self._lock:
            if entry.relative_path in self._entries:
                return False
            self._entries[entry.relative_path] = entry
            return True

    def snapshot(self) -> Dict[str, ScanEntry]:
        with self._lock:
            return dict(self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class SkipList:
    """A thread-safe, append-only list of :class:`SkipRecord`."""

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[SkipRecord] = []

    def add(self, path: str, reason: str, stage: str):
        with self._lock:
            self._records.append(SkipRecord(path=path, reason=reason, stage=stage))

    def sorted(self) -> List[SkipRecord]:
        with self._lock:
            return sorted(self._records, key=lambda r: (sort_key(r.path), r.stage))


class WalkResult(NamedTuple):
    entries: Dict[str, ScanEntry]
    skipped: List[SkipRecord]

    @property
    def files(self) -> List[ScanEntry]:
        """File entries in deterministic order."""
        return sorted(
            (e for e in self.entries.values() if not e.is_directory),
            key=lambda e: sort_key(e.relative_path),
        )


Task = Tuple[Callable, tuple]


class ParallelWalker:
    """
    Walks one directory tree with a bounded pool of worker threads.

    Ignored directories are pruned before they are expanded and ignored
    files before they are classified, so an ignored subtree costs one rule
    check. Symlinked directories are listed but never entered.
    """

    def __init__(
        self,
        root: Path,
        rules: Optional[IgnoreRuleSet] = None,
        classifier: Classifier = classify,
        max_workers: Optional[int] = None,
    ):
        self.root = Path(root)
        self.rules = rules
        self.classifier = classifier
        self.max_workers = max_workers or default_workers()
        self._registry = EntryRegistry()
        self._skipped = SkipList()

    def _excluded(self, relative_path: str, is_directory: bool) -> bool:
        return bool(self.rules) and self.rules.is_excluded(relative_path, is_directory)

    def _expand(self, directory: Path, rel_dir: str) -> List[Task]:
        try:
            with os.scandir(directory) as it:
                children = list(it)
        except OSError as e:
            reason = e.strerror or str(e)
            log.warning("Cannot read directory %s: %s", directory, reason)
            self._skipped.add(rel_dir or ".", reason, "walk")
            return []

        follow_ups: List[Task] = []
        for child in children:
            if child.name in ALWAYS_SKIPPED_NAMES:
                continue
            rel = f"{rel_dir}/{child.name}" if rel_dir else child.name
            path = Path(child.path)
            try:
                is_real_dir = child.is_dir(follow_symlinks=False)
                is_link = child.is_symlink()
                is_dir, is_file = child.is_dir(), child.is_file()
            except OSError:
                is_real_dir = is_link = is_dir = is_file = False

            if is_real_dir:
                if self._excluded(rel, True):
                    continue
                if self._registry.add(ScanEntry(path, rel, is_directory=True)):
                    follow_ups.append((self._expand, (path, rel)))
            elif is_link and is_dir:
                if self._excluded(rel, True):
                    continue
                log.debug("Not following symlinked directory %s", rel)
                self._registry.add(ScanEntry(path, rel, is_directory=True))
            elif is_file:
                if self._excluded(rel, False):
                    continue
                follow_ups.append((self._classify, (path, rel)))
            else:
                if self._excluded(rel, False):
                    continue
                self._registry.add(
                    ScanEntry(path, rel, is_directory=False, extension=extension_of(child.name))
                )
                self._skipped.add(rel, "not a regular file", "classify")
        return follow_ups

    def _classify(self, path: Path, rel: str) -> List[Task]:
        extension = extension_of(path.name)
        try:
            result = self.classifier(path)
        except ClassifyError as e:
            log.debug("Cannot classify %s: %s", rel, e.reason)
            self._registry.add(ScanEntry(path, rel, is_directory=False, extension=extension))
            self._skipped.add(rel, e.reason, "classify")
            return []
        self._registry.add(
            ScanEntry(path, rel, is_directory=False, extension=extension, is_text=result.is_text)
        )
        return []

    def run(self) -> WalkResult:
        """
        Performs the walk.

        Returns:
            WalkResult: Every surviving entry keyed by relative path, and the
            entries that could not be scanned.

        Raises:
            FatalError: If the root is not an existing directory.
        """
        if not self.root.is_dir():
            raise FatalError(f"Root directory '{self.root}' not found or not a directory.")

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="walker"
        ) as executor:
            pending = {executor.submit(self._expand, self.root, "")}
            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for future in done:
                    for fn, args in future.result():
                        pending.add(executor.submit(fn, *args))

        result = WalkResult(self._registry.snapshot(), self._skipped.sorted())
        log.debug(
            "Walked %s: %d entries, %d skipped", self.root, len(result.entries), len(result.skipped)
        )
        return result


def walk(
    root: Path,
    rules: Optional[IgnoreRuleSet] = None,
    *,
    classifier: Classifier = classify,
    max_workers: Optional[int] = None,
) -> WalkResult:
    """
    Scans *root* concurrently and classifies every file found.

    Args:
        root (Path): The directory to walk.
        rules (IgnoreRuleSet, optional): Rules to prune with; None disables
            ignore filtering entirely.
        classifier (Callable): Sniffs one file; defaults to :func:`classify`.
        max_workers (int, optional): Pool size. Defaults to CPU count + 4.

    Returns:
        WalkResult: The unordered entries and the sorted skip records.
    """
    return ParallelWalker(Path(root).resolve(), rules, classifier, max_workers).run()
