"""
rosetree - Scan a directory tree in parallel, pick text file types, and
collect the tree plus the selected file contents into a single report.
"""

from .errors import (
    EmptySelection,
    FatalError,
    InvalidSelection,
    RoseTreeError,
    SelectionError,
)
from .models import ContentRecord, ExtensionGroup, Report, ScanEntry, Selection, SkipRecord
from .rosetree import (
    Timings,
    build_report,
    find_rule_files,
    generate_report,
    scan,
    write_report,
)

__all__ = [
    # The pipeline, stage by stage and in one call.
    "find_rule_files",
    "scan",
    "build_report",
    "write_report",
    "generate_report",
    "Timings",
    # Data passed between the stages.
    "ScanEntry",
    "ExtensionGroup",
    "Selection",
    "ContentRecord",
    "Report",
    "SkipRecord",
    # Errors the caller is expected to handle.
    "RoseTreeError",
    "FatalError",
    "SelectionError",
    "InvalidSelection",
    "EmptySelection",
]

__version__ = "0.2.1"
