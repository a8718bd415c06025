import shutil
import tempfile
import unittest
from pathlib import Path

from rosetree import (
    EmptySelection,
    FatalError,
    InvalidSelection,
    Timings,
    build_report,
    find_rule_files,
    generate_report,
    scan,
    write_report,
)
from rosetree.cli import main
from rosetree.models import DASHED_SEPARATOR, FULL_SEPARATOR


class TestScenario(unittest.TestCase):
    def setUp(self):
        """Set up the reference tree: text, binary, nested text and an ignore file."""
        self.test_dir = Path(tempfile.mkdtemp())
        (self.test_dir / "a.txt").write_text("hello")
        (self.test_dir / "b.bin").write_bytes(b"\x00\x01\x02")
        (self.test_dir / "sub").mkdir()
        (self.test_dir / "sub" / "c.txt").write_text("world")
        (self.test_dir / ".gitignore").write_text("*.bin\n")

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_reference_report(self):
        result = generate_report(self.test_dir, apply_ignore_rules=True, selection_input="a")
        report = result.report
        self.assertEqual(
            report.tree_text,
            ".\n├── .gitignore\n├── a.txt\n└── sub/\n    └── c.txt\n",
        )
        self.assertNotIn("b.bin", report.text)
        self.assertLess(report.text.index("\na.txt:\n"), report.text.index("\nsub/c.txt:\n"))
        self.assertIn(f"\na.txt:\n{DASHED_SEPARATOR}\nhello\n{FULL_SEPARATOR}\n", report.text)
        self.assertIn(f"\nsub/c.txt:\n{DASHED_SEPARATOR}\nworld\n{FULL_SEPARATOR}\n", report.text)
        self.assertEqual(result.skipped, [])

    def test_exact_layout_for_one_group(self):
        result = generate_report(self.test_dir, True, "txt")
        expected = (
            "File Structure:\n"
            ".\n├── .gitignore\n├── a.txt\n└── sub/\n    └── c.txt\n"
            f"{FULL_SEPARATOR}\nFile Contents:\n{FULL_SEPARATOR}\n"
            f"\na.txt:\n{DASHED_SEPARATOR}\nhello\n{FULL_SEPARATOR}\n"
            f"\nsub/c.txt:\n{DASHED_SEPARATOR}\nworld\n{FULL_SEPARATOR}\n"
        )
        self.assertEqual(result.report.text, expected)
        self.assertEqual(result.files_read, 2)

    def test_without_rules_binary_shows_in_tree_only(self):
        result = generate_report(self.test_dir, apply_ignore_rules=False, selection_input="a")
        self.assertIn("├── b.bin", result.report.tree_text)
        self.assertNotIn("b.bin:", result.report.content_text)

    def test_runs_are_byte_identical(self):
        first = generate_report(self.test_dir, True, "a", max_workers=1)
        second = generate_report(self.test_dir, True, "a", max_workers=32)
        self.assertEqual(first.report.text, second.report.text)

    def test_rule_compilation_is_timed(self):
        discovery = find_rule_files(self.test_dir)
        timings = Timings()
        scan(self.test_dir, True, rule_files=discovery.rule_files, timings=timings)
        self.assertGreater(timings.find_rule_files, 0)

    def test_timings_cover_every_stage(self):
        timings = generate_report(self.test_dir, True, "a").timings
        self.assertEqual(len(timings.rows()), 6)
        self.assertGreater(timings.collect_files, 0)
        self.assertAlmostEqual(timings.total, sum(seconds for _, seconds in timings.rows()))


class TestPipeline(unittest.TestCase):
    def setUp(self):
        """Set up a small project with several file types and a nested rule file."""
        self.test_dir = Path(tempfile.mkdtemp())
        (self.test_dir / "src").mkdir()
        (self.test_dir / "src" / "main.py").write_text("print('Hello from Python!')")
        (self.test_dir / "src" / "__pycache__").mkdir()
        (self.test_dir / "src" / "__pycache__" / "main.pyc").write_bytes(b"\x00\x00cached")
        (self.test_dir / "web").mkdir()
        (self.test_dir / "web" / "index.js").write_text("console.log('Hello from JS!');")
        (self.test_dir / "web" / "node_modules").mkdir()
        (self.test_dir / "web" / "node_modules" / "dependency.js").write_text("dep")
        (self.test_dir / "web" / ".gitignore").write_text("node_modules/\n")
        (self.test_dir / ".gitignore").write_text("__pycache__/\n*.log\n!important.log\n")
        (self.test_dir / "debug.log").write_text("noise")
        (self.test_dir / "important.log").write_text("keep me")
        (self.test_dir / "README.md").write_text("# Test Project")
        self.output_dir = Path(tempfile.mkdtemp())

    def tearDown(self):
        shutil.rmtree(self.test_dir)
        shutil.rmtree(self.output_dir)

    def test_rule_files_are_listed_root_first(self):
        discovery = find_rule_files(self.test_dir)
        self.assertEqual(discovery.relative_paths, [".gitignore", "web/.gitignore"])

    def test_ignored_paths_never_appear(self):
        result = scan(self.test_dir, apply_ignore_rules=True)
        self.assertNotIn("debug.log", result.entries)
        self.assertNotIn("web/node_modules", result.entries)
        self.assertNotIn("src/__pycache__", result.entries)
        self.assertIn("important.log", result.entries)
        self.assertEqual(result.labels, ["", "js", "log", "md", "py"])

        report = build_report(result, "a").report
        self.assertNotIn("node_modules", report.tree_text)
        self.assertNotIn("dependency.js", report.text)
        self.assertNotIn("\ndep\n", report.content_text)
        self.assertNotIn("noise", report.text)
        self.assertIn("keep me", report.text)

    def test_index_selection_is_exact_union(self):
        result = scan(self.test_dir, apply_ignore_rules=True)
        content = build_report(result, "2 5").report.content_text
        self.assertIn("console.log('Hello from JS!');", content)
        self.assertIn("print('Hello from Python!')", content)
        self.assertNotIn("# Test Project", content)
        self.assertNotIn("keep me", content)
        self.assertEqual(content.count(f"\n{DASHED_SEPARATOR}\n"), 2)

    def test_tree_is_independent_of_selection(self):
        result = scan(self.test_dir, apply_ignore_rules=True)
        only_md = build_report(result, "md").report
        everything = build_report(result, "a").report
        self.assertEqual(only_md.tree_text, everything.tree_text)
        self.assertIn("main.py", only_md.tree_text)

    def test_out_of_range_selection_produces_no_report(self):
        result = scan(self.test_dir, apply_ignore_rules=True)
        with self.assertRaises(InvalidSelection):
            build_report(result, "1 42")
        with self.assertRaises(EmptySelection):
            build_report(result, "")

    def test_missing_root_is_fatal(self):
        with self.assertRaises(FatalError):
            scan(self.test_dir / "missing", apply_ignore_rules=False)
        with self.assertRaises(FatalError):
            find_rule_files(self.test_dir / "README.md")

    def test_write_report(self):
        report = generate_report(self.test_dir, True, "md").report
        path = write_report(report, self.output_dir)
        self.assertTrue(path.name.startswith("rosetree_"))
        self.assertEqual(path.read_text(encoding="utf-8"), report.text)

    def test_cli_non_interactive(self):
        code = main([str(self.test_dir), "--ignore", "--select", "py", "-o", str(self.output_dir)])
        self.assertEqual(code, 0)
        outputs = list(self.output_dir.glob("rosetree_*.txt"))
        self.assertEqual(len(outputs), 1)
        content = outputs[0].read_text(encoding="utf-8")
        self.assertIn("src/main.py:", content)
        self.assertNotIn("README.md:", content)

    def test_cli_invalid_selection_and_missing_root(self):
        self.assertEqual(
            main([str(self.test_dir), "--no-ignore", "--select", "99", "-o", str(self.output_dir)]), 2
        )
        self.assertEqual(list(self.output_dir.iterdir()), [])
        self.assertEqual(main([str(self.test_dir / "missing"), "--no-ignore", "-s", "a"]), 1)


if __name__ == "__main__":
    unittest.main()
