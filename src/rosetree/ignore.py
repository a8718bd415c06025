"""
Ignore-rule discovery and matching.

Rule files use gitignore syntax and are scoped to the directory they live
in. Scopes are evaluated from the root towards the leaf and the last
matching pattern wins, so a deeper rule file can re-include (``!pattern``)
what an ancestor excluded, or exclude what it allowed.
"""

import logging
import os
from pathlib import Path
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

import pathspec
from pathspec.pattern import Pattern

from .errors import RuleFileError
from .models import DEFAULT_ENCODING, SkipRecord

log = logging.getLogger(__name__)

RULE_FILE_NAMES = (".gitignore", ".ignore")
ALWAYS_SKIPPED_NAMES = frozenset({".git"})
GIT_EXCLUDE_FILE = Path(".git", "info", "exclude")


class RuleScope(NamedTuple):
    """The compiled patterns of one rule file and the directory they apply to."""

    base: str
    source: str
    patterns: Tuple[Pattern, ...]

    def localize(self, relative_path: str) -> Optional[str]:
        """Returns *relative_path* relative to this scope, or None if outside it."""
        if not self.base:
            return relative_path
        prefix = self.base + "/"
        if relative_path.startswith(prefix):
            return relative_path[len(prefix):]
        return None


def _relative_posix(path: Path, root: Path) -> str:
    rel = path.relative_to(root).as_posix()
    return "" if rel == "." else rel


def discover_rule_files(
    root: Path, names: Sequence[str] = RULE_FILE_NAMES
) -> List[Path]:
    """
    Finds every ignore-rule file under *root*.

    Symlinked rule files are not reported and ``.git`` directories are not
    entered. The result is ordered root-first; inside one directory files
    follow the order of *names*.

    Args:
        root (Path): The directory to search.
        names (Sequence[str]): Filenames that count as rule files.

    Returns:
        List[Path]: Absolute paths of the rule files found.
    """
    root = Path(root)
    found = []

    def on_error(err: OSError):
        log.warning("Cannot search %s for ignore files: %s", err.filename, err.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=on_error):
        dirnames[:] = [d for d in dirnames if d not in ALWAYS_SKIPPED_NAMES]
        for name in filenames:
            if name not in names:
                continue
            path = Path(dirpath, name)
            if path.is_symlink() or not path.is_file():
                continue
            found.append(path)

    def order(path: Path):
        return (path.parent.relative_to(root).parts, names.index(path.name))

    return sorted(found, key=order)


def _compile_rule_file(path: Path, base: str) -> RuleScope:
    try:
        lines = path.read_text(encoding=DEFAULT_ENCODING).splitlines()
    except UnicodeDecodeError:
        raise RuleFileError(path, "not valid UTF-8") from None
    except OSError as e:
        raise RuleFileError(path, e.strerror or str(e)) from e
    try:
        spec = pathspec.PathSpec.from_lines("gitwildmatch", lines)
    except ValueError as e:
        raise RuleFileError(path, f"invalid pattern: {e}") from e
    patterns = tuple(p for p in spec.patterns if p.include is not None)
    return RuleScope(base=base, source=str(path), patterns=patterns)


class IgnoreRuleSet:
    """
    An immutable, ordered collection of rule scopes.

    Built once before the walk and then shared by every worker thread
    without locking.
    """

    def __init__(
        self, scopes: Iterable[RuleScope] = (), warnings: Iterable[SkipRecord] = ()
    ):
        self._scopes = tuple(scopes)
        self.warnings = tuple(warnings)

    @classmethod
    def load(
        cls,
        root: Path,
        rule_files: Iterable[Path],
        include_git_exclude: bool = True,
    ) -> "IgnoreRuleSet":
        """
        Compiles the given rule files into a rule set rooted at *root*.

        A rule file that cannot be read or parsed is left out and reported in
        :attr:`warnings`; it never aborts the load.

        Args:
            root (Path): The scan root every rule file lives under.
            rule_files (Iterable[Path]): Rule files, typically from
                :func:`discover_rule_files`.
            include_git_exclude (bool): Also load ``.git/info/exclude`` of the
                root as the lowest-precedence scope.

        Returns:
            IgnoreRuleSet: The compiled rule set.
        """
        root = Path(root)
        candidates = [Path(p) for p in rule_files]
        git_exclude = root / GIT_EXCLUDE_FILE
        if include_git_exclude and git_exclude.is_file():
            candidates.insert(0, git_exclude)

        scopes, warnings = [], []
        for path in candidates:
            base = "" if path == git_exclude else _relative_posix(path.parent, root)
            try:
                scopes.append(_compile_rule_file(path, base))
            except RuleFileError as e:
                log.warning("Skipping ignore file %s", e)
                warnings.append(
                    SkipRecord(path=_relative_posix(path, root), reason=e.reason, stage="rules")
                )
        # Stable sort keeps file order (.gitignore before .ignore) within a directory.
        scopes.sort(key=lambda s: tuple(s.base.split("/")) if s.base else ())
        return cls(scopes, warnings)

    @property
    def sources(self) -> List[str]:
        return [scope.source for scope in self._scopes]

    def __len__(self) -> int:
        return len(self._scopes)

    def is_excluded(self, relative_path: str, is_directory: bool = False) -> bool:
        """
        Checks whether *relative_path* is excluded by the rules.

        Args:
            relative_path (str): POSIX path relative to the scan root.
            is_directory (bool): Whether the path is a directory, so that
                directory-only patterns (``build/``) can match it.

        Returns:
            bool: True if the last matching pattern is an exclusion.
        """
        excluded = False
        for scope in self._scopes:
            local = scope.localize(relative_path)
            if local is None:
                continue
            if is_directory:
                local += "/"
            for pattern in scope.patterns:
                if pattern.match_file(local):
                    excluded = bool(pattern.include)
        return excluded
