from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import FrozenSet, Optional, Tuple

# --- Configuration Constants ---
DEFAULT_ENCODING = "utf-8"
SEPARATOR_WIDTH = 80
FULL_SEPARATOR = "=" * SEPARATOR_WIDTH
DASHED_SEPARATOR = "-" * SEPARATOR_WIDTH
TREE_HEADER_TEXT, CONTENT_HEADER_TEXT = "File Structure:", "File Contents:"
NO_EXTENSION, NO_EXTENSION_LABEL = "", "no extension"


@dataclass(frozen=True)
class ScanEntry:
    """A single file or directory discovered during the walk."""

    absolute_path: Path
    relative_path: str
    is_directory: bool
    extension: Optional[str] = None
    is_text: Optional[bool] = None

    @property
    def extension_label(self) -> str:
        """The extension group this entry belongs to (``""`` when it has no suffix)."""
        return self.extension or NO_EXTENSION


@dataclass(frozen=True)
class SkipRecord:
    """An entry that was left out of a stage, with the reason why."""

    path: str
    reason: str
    stage: str


@dataclass(frozen=True)
class ExtensionGroup:
    """Text files sharing a filename suffix; the unit of operator selection."""

    extension: str
    entries: Tuple[ScanEntry, ...] = ()

    @property
    def label(self) -> str:
        return display_label(self.extension)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class Selection:
    """The set of extension labels chosen by the operator."""

    labels: FrozenSet[str] = field(default_factory=frozenset)
    is_all: bool = False

    def __contains__(self, label: str) -> bool:
        return label in self.labels


@dataclass(frozen=True)
class ContentRecord:
    """The full decoded contents of one selected file."""

    relative_path: str
    content: str


@dataclass(frozen=True)
class Report:
    """The final report: tree section followed by the concatenated contents."""

    tree_text: str
    content_text: str
    generated_at: datetime

    @property
    def text(self) -> str:
        """The report as persisted: tree section, then the content section."""
        return (
            f"{TREE_HEADER_TEXT}\n{self.tree_text}"
            f"{FULL_SEPARATOR}\n{CONTENT_HEADER_TEXT}\n{FULL_SEPARATOR}\n"
            f"{self.content_text}"
        )


def display_label(extension: str) -> str:
    """Returns the human-readable label for an extension group key."""
    return extension if extension else NO_EXTENSION_LABEL


def sort_key(relative_path: str) -> Tuple[str, ...]:
    """
    The deterministic ordering applied to every externally visible listing.

    Paths are compared segment by segment, so sorting by this key yields the
    pre-order traversal of a tree whose children are sorted by name. The
    tree and the content blob therefore list files in the same order.
    """
    return tuple(relative_path.split("/"))
