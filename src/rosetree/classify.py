"""Text/binary sniffing from a bounded prefix of each file."""

import codecs
from enum import Enum
from pathlib import Path
from typing import Optional

from .errors import ClassifyError

SNIFF_SIZE = 1024
# Share of control bytes in the sample above which a file counts as binary.
BINARY_CONTROL_RATIO = 0.3
# Control bytes that commonly appear in text: BS, TAB, LF, FF, CR, ESC.
_TEXT_CONTROL_BYTES = frozenset({0x08, 0x09, 0x0A, 0x0C, 0x0D, 0x1B})


class Classification(Enum):
    """The outcome of sniffing a file."""

    TEXT = "text"
    BINARY = "binary"

    @property
    def is_text(self) -> bool:
        return self is Classification.TEXT


def _control_ratio(sample: bytes) -> float:
    control = sum(
        1
        for byte in sample
        if (byte < 0x20 and byte not in _TEXT_CONTROL_BYTES) or byte == 0x7F
    )
    return control / len(sample)


def _is_utf8(sample: bytes) -> bool:
    # final=False keeps a multi-byte sequence cut off by the sample boundary
    # buffered instead of reporting it as invalid.
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        decoder.decode(sample, final=False)
    except UnicodeDecodeError:
        return False
    return True


def inspect(sample: bytes) -> Classification:
    """
    Classifies a byte sample.

    A NUL byte or a high share of control bytes marks the sample as binary;
    otherwise it is text if it decodes as UTF-8. An empty sample is text.

    Args:
        sample (bytes): The leading bytes of a file.

    Returns:
        Classification: TEXT or BINARY.
    """
    if not sample:
        return Classification.TEXT
    if b"\x00" in sample:
        return Classification.BINARY
    if _control_ratio(sample) > BINARY_CONTROL_RATIO:
        return Classification.BINARY
    return Classification.TEXT if _is_utf8(sample) else Classification.BINARY


def classify(file_path: Path) -> Classification:
    """
    Reads at most :data:`SNIFF_SIZE` bytes of *file_path* and classifies them.

    Raises:
        ClassifyError: If the file cannot be opened or read.
    """
    try:
        with open(file_path, "rb") as f:
            sample = f.read(SNIFF_SIZE)
    except OSError as e:
        raise ClassifyError(file_path, e.strerror or str(e)) from e
    return inspect(sample)


def extension_of(name: str) -> Optional[str]:
    """Returns the case-preserved suffix of *name* without the dot, if any."""
    suffix = Path(name).suffix
    return suffix[1:] or None
