"""Extension grouping and resolution of the operator's selection."""

from typing import Dict, Iterable, List, Sequence

from .errors import EmptySelection, InvalidSelection
from .models import ExtensionGroup, ScanEntry, Selection, sort_key

ALL_TOKENS = frozenset({"a", "all"})


def group_by_extension(entries: Iterable[ScanEntry]) -> Dict[str, ExtensionGroup]:
    """
    Buckets text files by their case-sensitive extension.

    Directories, binary files and files that could not be classified are
    left out. Files without a suffix share the ``""`` bucket.

    Args:
        entries (Iterable[ScanEntry]): Entries from the walk, in any order.

    Returns:
        Dict[str, ExtensionGroup]: Groups keyed by extension, in label order,
        each holding its entries in deterministic order.
    """
    buckets: Dict[str, List[ScanEntry]] = {}
    for entry in entries:
        if entry.is_directory or entry.is_text is not True:
            continue
        buckets.setdefault(entry.extension_label, []).append(entry)
    return {
        ext: ExtensionGroup(
            ext, tuple(sorted(buckets[ext], key=lambda e: sort_key(e.relative_path)))
        )
        for ext in sorted(buckets)
    }


def available_labels(groups: Dict[str, ExtensionGroup]) -> List[str]:
    """The extension keys in menu order; index ``i`` is offered as ``i + 1``."""
    return sorted(groups)


def resolve_selection(available: Sequence[str], operator_input: str) -> Selection:
    """
    Turns raw operator input into a :class:`Selection`.

    The input is either the all-token (``a`` or ``all``) or whitespace
    separated 1-based menu indices and/or extension labels.

    Raises:
        InvalidSelection: A token is neither a listed index nor a label.
        EmptySelection: Nothing was selected.
    """
    text = (operator_input or "").strip()
    if text.lower() in ALL_TOKENS:
        if not available:
            raise EmptySelection()
        return Selection(frozenset(available), is_all=True)

    chosen = set()
    for token in text.split():
        if token.isdecimal():
            index = int(token)
            if not 1 <= index <= len(available):
                raise InvalidSelection(token, len(available))
            chosen.add(available[index - 1])
        elif token in available:
            chosen.add(token)
        elif token.lstrip(".") in available and token.startswith("."):
            chosen.add(token.lstrip("."))
        else:
            raise InvalidSelection(token, len(available))
    if not chosen:
        raise EmptySelection()
    return Selection(frozenset(chosen))


def selected_entries(
    groups: Dict[str, ExtensionGroup], selection: Selection
) -> List[ScanEntry]:
    """All entries of the selected groups, in deterministic order."""
    entries = [e for ext, group in groups.items() if ext in selection for e in group.entries]
    return sorted(entries, key=lambda e: sort_key(e.relative_path))
