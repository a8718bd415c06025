"""Tree rendering and report assembly."""

from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Sequence

from .aggregate import render_contents
from .models import ContentRecord, Report, ScanEntry

TREE_STYLE = ("├── ", "└── ", "│   ", "    ")
DIRECTORY_MARKER = "/"
REPORT_PREFIX, REPORT_SUFFIX = "rosetree", ".txt"


def _build_tree(entries: Iterable[ScanEntry]) -> Dict[str, Any]:
    """Nests entries by path segment; files map to None, directories to dicts."""
    tree: Dict[str, Any] = {}
    for entry in entries:
        *parents, name = entry.relative_path.split("/")
        level = tree
        for part in parents:
            level = level.setdefault(part, {})
        level.setdefault(name, {} if entry.is_directory else None)
    return tree


def render_tree(entries: Iterable[ScanEntry], root_label: str = ".") -> str:
    """
    Renders entries as a connector-drawn tree.

    Children are listed by name at every level, which is the same order
    :func:`rosetree.models.sort_key` imposes on flat listings. Directories
    carry a trailing ``/``; directories implied by a path but absent from
    *entries* are drawn as well.

    Args:
        entries (Iterable[ScanEntry]): The surviving walk entries.
        root_label (str): Text for the first line.

    Returns:
        str: The tree, one entry per line, ending with a newline.
    """
    lines = [root_label]

    def build_lines_recursive(d: Dict[str, Any], prefix: str = ""):
        names = sorted(d)
        for i, name in enumerate(names):
            is_last = i == len(names) - 1
            connector = TREE_STYLE[1] if is_last else TREE_STYLE[0]
            children = d[name]
            marker = DIRECTORY_MARKER if children is not None else ""
            lines.append(f"{prefix}{connector}{name}{marker}")
            if children:
                extension = TREE_STYLE[3] if is_last else TREE_STYLE[2]
                build_lines_recursive(children, prefix + extension)

    build_lines_recursive(_build_tree(entries))
    return "\n".join(lines) + "\n"


def assemble(
    tree_text: str,
    records: Sequence[ContentRecord],
    generated_at: Optional[datetime] = None,
) -> Report:
    """Combines a rendered tree and content records into a :class:`Report`."""
    if tree_text and not tree_text.endswith("\n"):
        tree_text += "\n"
    return Report(
        tree_text=tree_text,
        content_text=render_contents(records),
        generated_at=generated_at or datetime.now(),
    )


def output_filename(
    report: Report, prefix: str = REPORT_PREFIX, suffix: str = REPORT_SUFFIX
) -> str:
    """The timestamped name a report is saved under, e.g. ``rosetree_20240101_120000.txt``."""
    return f"{prefix}_{report.generated_at:%Y%m%d_%H%M%S}{suffix}"

