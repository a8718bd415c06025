"""Exception hierarchy for rosetree.

Only :class:`FatalError` and :class:`SelectionError` ever escape the core;
the per-entry errors are caught at their stage and turned into
:class:`~rosetree.models.SkipRecord` values.
"""


class RoseTreeError(Exception):
    """Base class for every error raised by rosetree."""


class FatalError(RoseTreeError):
    """The run cannot continue (bad root directory, unwritable output)."""


class RuleFileError(RoseTreeError):
    """An ignore-rule file could not be read or compiled."""

    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ClassifyError(RoseTreeError):
    """A file could not be sniffed for its content type."""

    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class ContentReadError(RoseTreeError):
    """A selected file could not be fully read as UTF-8 text."""

    def __init__(self, path, reason: str):
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class SelectionError(RoseTreeError):
    """The operator's extension selection cannot be used."""


class InvalidSelection(SelectionError):
    """A selection token names an index or label that is not available."""

    def __init__(self, token: str, available_count: int):
        super().__init__(
            f"'{token}' is not a valid choice (expected 1-{available_count}, "
            "a listed extension, or 'a' for all)"
        )
        self.token = token


class EmptySelection(SelectionError):
    """The selection resolved to no extension at all."""

    def __init__(self):
        super().__init__("No file types selected.")
