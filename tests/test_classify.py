import shutil
import tempfile
import unittest
from pathlib import Path

from rosetree.classify import (
    SNIFF_SIZE,
    Classification,
    classify,
    extension_of,
    inspect,
)
from rosetree.errors import ClassifyError


class TestInspect(unittest.TestCase):
    def test_empty_sample_is_text(self):
        self.assertIs(inspect(b""), Classification.TEXT)

    def test_nul_byte_is_binary(self):
        self.assertIs(inspect(b"hello\x00world"), Classification.BINARY)

    def test_plain_utf8_is_text(self):
        self.assertIs(inspect("héllo wörld\n".encode("utf-8")), Classification.TEXT)

    def test_truncated_sequence_at_end_is_ignored(self):
        self.assertIs(inspect(b"abc\xc3"), Classification.TEXT)

    def test_invalid_utf8_is_binary(self):
        self.assertIs(inspect(b"caf\xe9 au lait"), Classification.BINARY)

    def test_mostly_control_bytes_is_binary(self):
        self.assertIs(inspect(bytes(range(1, 8)) * 10), Classification.BINARY)

    def test_common_whitespace_controls_are_text(self):
        self.assertIs(inspect(b"\t\r\n" * 50), Classification.TEXT)


class TestClassify(unittest.TestCase):
    def setUp(self):
        self.test_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_empty_file_is_text(self):
        path = self.test_dir / "empty.txt"
        path.write_bytes(b"")
        self.assertIs(classify(path), Classification.TEXT)

    def test_nul_in_prefix_wins_over_later_text(self):
        """A NUL byte inside the sniffed prefix marks the file binary."""
        path = self.test_dir / "mixed.dat"
        path.write_bytes(b"\x00" + b"plain text " * 500)
        self.assertIs(classify(path), Classification.BINARY)

    def test_only_prefix_is_inspected(self):
        path = self.test_dir / "late.bin"
        path.write_bytes(b"a" * SNIFF_SIZE + b"\x00\x01\x02")
        self.assertIs(classify(path), Classification.TEXT)

    def test_multibyte_split_at_sniff_boundary(self):
        path = self.test_dir / "boundary.txt"
        path.write_bytes(b"a" * (SNIFF_SIZE - 1) + "é".encode("utf-8"))
        self.assertIs(classify(path), Classification.TEXT)

    def test_missing_file_raises(self):
        with self.assertRaises(ClassifyError):
            classify(self.test_dir / "missing.txt")


class TestExtensionOf(unittest.TestCase):
    def test_extensions(self):
        self.assertEqual(extension_of("main.py"), "py")
        self.assertEqual(extension_of("archive.tar.gz"), "gz")
        self.assertEqual(extension_of("README.MD"), "MD")
        self.assertIsNone(extension_of("Makefile"))
        self.assertIsNone(extension_of(".gitignore"))


if __name__ == "__main__":
    unittest.main()
