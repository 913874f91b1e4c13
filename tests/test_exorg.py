"""Tests for the exorg public API and command line."""

import json
import tempfile
from pathlib import Path
from unittest import mock

import pytest

from exorg import (
    AmbiguousCodeBlockName,
    CodeBlockNotFound,
    Config,
    Exporter,
    FileOpenError,
    FileReadError,
    InvalidOutputFormat,
    UnsatisfiableDependencies,
    tangle,
)
from exorg.cli import main
from exorg.files import read_lines, write_lines


PROGRAM_ORG = """\
#+TITLE: Program

#+NAME: main
#+DEPS: greet
#+BEGIN_SRC python
greet()
#+END_SRC

#+NAME: greet
#+DEPS: imports
#+BEGIN_SRC python
def greet():
    print(sys.argv)
#+END_SRC

#+NAME: imports
#+BEGIN_SRC python
import sys
#+END_SRC

#+NAME: unrelated
#+BEGIN_SRC rust
fn main() {}
#+END_SRC
"""

MULTI_FILE_ORG = """\
#+BEGIN_SRC python :tangle a.out
a
#+END_SRC

#+BEGIN_SRC sh
default
#+END_SRC

#+BEGIN_SRC python :tangle b.out
b
#+END_SRC
"""


def write_doc(d, text, name="program.org"):
    path = Path(d) / name
    path.write_text(text)
    return path


# --- Line store ---


class TestFiles:
    def test_read_strips_newlines_and_expands_tabs(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "f.txt"
            path.write_text("a\n\tb\n\n")
            assert read_lines(path) == ["a", "    b", ""]

    def test_read_missing(self):
        with tempfile.TemporaryDirectory() as d:
            with pytest.raises(FileOpenError) as exc_info:
                read_lines(Path(d) / "missing.org")
            assert "missing.org" in str(exc_info.value)

    def test_read_invalid_utf8(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "bad.org"
            path.write_bytes(b"\xff\xfe\xfa")
            with pytest.raises(FileReadError):
                read_lines(path)

    def test_write_overwrites(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "out.txt"
            path.write_text("old content that is longer\n")
            write_lines(path, ["x", "y"])
            assert path.read_text() == "x\ny\n"

    def test_write_creates_parents(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "nested" / "dir" / "out.txt"
            write_lines(path, ["x"])
            assert path.read_text() == "x\n"


# --- Config ---


class TestConfig:
    def test_default(self):
        cfg = Config()
        assert cfg.tab_width == 4
        assert cfg.emacs == "emacs"
        assert cfg.pdflatex == "pdflatex"
        assert cfg.languages == {}

    def test_from_dir_missing(self):
        with tempfile.TemporaryDirectory() as d:
            cfg = Config.from_dir(d)
            assert cfg == Config()

    def test_from_dir(self):
        with tempfile.TemporaryDirectory() as d:
            (Path(d) / "exorg.toml").write_text(
                'tab_width = 2\nemacs = "/opt/emacs"\n\n[languages]\nzig = "zig"\n'
            )
            cfg = Config.from_dir(d)
            assert cfg.tab_width == 2
            assert cfg.emacs == "/opt/emacs"
            assert cfg.languages == {"zig": "zig"}

    def test_from_file_missing(self):
        with tempfile.TemporaryDirectory() as d:
            with pytest.raises(FileOpenError):
                Config.from_file(Path(d) / "nope.toml")

    def test_from_file_malformed(self):
        with tempfile.TemporaryDirectory() as d:
            path = Path(d) / "exorg.toml"
            path.write_text("tab_width = = 2\n")
            with pytest.raises(FileReadError):
                Config.from_file(path)

    def test_invalid_tab_width(self):
        with pytest.raises(ValueError):
            Config(tab_width=-1)
        with pytest.raises(ValueError):
            Config.from_mapping({"tab_width": "4"})

    def test_unknown_key(self):
        with pytest.raises(ValueError):
            Config.from_mapping({"bogus": 1})

    def test_invalid_languages(self):
        with pytest.raises(ValueError):
            Config.from_mapping({"languages": {"zig": ""}})


# --- Exporter / tangle ---


class TestTangle:
    def test_whole_target(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            written = tangle(path, "python", base_dir=d)
            assert written == [str(Path(d) / "program.py")]
            assert Path(written[0]).read_text() == (
                "greet()\n\ndef greet():\n    print(sys.argv)\n\nimport sys\n"
            )

    def test_single_block_has_no_trailing_blank_line(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, "#+BEGIN_SRC python\nx\n#+END_SRC\n")
            tangle(path, "python", base_dir=d)
            assert read_lines(Path(d) / "program.py") == ["x"]

    def test_selection_orders_dependencies(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            tangle(path, "python", selector="main", base_dir=d)
            assert read_lines(Path(d) / "program.py") == [
                "import sys",
                "",
                "def greet():",
                "    print(sys.argv)",
                "",
                "greet()",
            ]

    def test_prefix_selection(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            tangle(path, "python", selector="imp", base_dir=d)
            assert read_lines(Path(d) / "program.py") == ["import sys"]

    def test_language_exclusivity(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            tangle(path, "rust", base_dir=d)
            assert read_lines(Path(d) / "program.rs") == ["fn main() {}"]

    def test_target_is_case_insensitive(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            written = tangle(path, "Python", base_dir=d)
            assert written == [str(Path(d) / "program.py")]

    def test_explicit_output(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            written = tangle(path, "rust", output="out/main.rs", base_dir=d)
            assert written == [str(Path(d) / "out" / "main.rs")]
            assert not (Path(d) / "program.rs").exists()

    def test_custom_language_suffix(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(
                d, "#+SRC_LANG: nim nim\n#+BEGIN_SRC nim\necho 1\n#+END_SRC\n"
            )
            written = tangle(path, "nim", base_dir=d)
            assert written == [str(Path(d) / "program.nim")]

    def test_config_language_suffix(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, "#+BEGIN_SRC zig\nconst x = 1;\n#+END_SRC\n")
            written = tangle(path, "zig", config=Config(languages={"zig": "zig"}), base_dir=d)
            assert written == [str(Path(d) / "program.zig")]

    def test_multi_file(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, MULTI_FILE_ORG)
            written = tangle(path, ".", base_dir=d)
            assert written == [
                str(Path(d) / "a.out"),
                str(Path(d) / "program"),
                str(Path(d) / "b.out"),
            ]
            assert (Path(d) / "a.out").read_text() == "a\n\n"
            assert (Path(d) / "program").read_text() == "default\n\n"
            assert (Path(d) / "b.out").read_text() == "b\n\n"

    def test_destination_relative_to_document(self):
        with tempfile.TemporaryDirectory() as d:
            sub = Path(d) / "sub"
            sub.mkdir()
            path = write_doc(
                sub,
                "#+BEGIN_SRC python :tangle lib.py\nlib\n#+END_SRC\n"
                "#+BEGIN_SRC python\nmain\n#+END_SRC\n",
            )
            written = tangle(path, "python", base_dir=d)
            assert written == [str(sub / "lib.py"), str(Path(d) / "program.py")]
            assert (sub / "lib.py").read_text() == "lib\n\n"
            assert not (Path(d) / "lib.py").exists()

    def test_absolute_destination(self):
        with tempfile.TemporaryDirectory() as d:
            target = Path(d) / "abs" / "lib.py"
            path = write_doc(d, f"#+BEGIN_SRC python :tangle {target}\nlib\n#+END_SRC\n")
            assert tangle(path, "python", base_dir=d) == [str(target)]

    def test_jupyter(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            written = tangle(path, "jupyter", selector="main", base_dir=d)
            nb = json.loads(Path(written[0]).read_text())
            assert written == [str(Path(d) / "program.ipynb")]
            assert [c["source"] for c in nb["cells"]] == [
                ["import sys"],
                ["def greet():\n", "    print(sys.argv)"],
                ["greet()"],
            ]

    def test_idempotent(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            tangle(path, "python", selector="main", base_dir=d)
            first = (Path(d) / "program.py").read_bytes()
            tangle(path, "python", selector="main", base_dir=d)
            assert (Path(d) / "program.py").read_bytes() == first

    @pytest.mark.parametrize(
        "text, selector, error",
        [
            (PROGRAM_ORG, "nothing", CodeBlockNotFound),
            (PROGRAM_ORG + "#+NAME: main\n#+BEGIN_SRC python\n#+END_SRC\n", "main", AmbiguousCodeBlockName),
            ("#+NAME: a\n#+DEPS: b\n#+BEGIN_SRC c\n#+END_SRC\n"
             "#+NAME: b\n#+DEPS: a\n#+BEGIN_SRC c\n#+END_SRC\n", "a", UnsatisfiableDependencies),
        ],
    )
    def test_failure_writes_nothing(self, text, selector, error):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, text)
            with pytest.raises(error):
                tangle(path, "c", selector=selector, base_dir=d)
            assert sorted(p.name for p in Path(d).iterdir()) == ["program.org"]

    def test_empty_target(self):
        with tempfile.TemporaryDirectory() as d:
            path = write_doc(d, PROGRAM_ORG)
            with pytest.raises(InvalidOutputFormat):
                tangle(path, "", base_dir=d)

    def test_plan_does_not_write(self):
        with tempfile.TemporaryDirectory() as d:
            exporter = Exporter.from_file(write_doc(d, PROGRAM_ORG), base_dir=d)
            files = exporter.plan("python", "main")
            assert len(files) == 1
            assert files[0].lines[0] == "import sys"
            assert not (Path(d) / "program.py").exists()


class TestExport:
    def test_pdf_formats_weave(self):
        with tempfile.TemporaryDirectory() as d:
            exporter = Exporter.from_file(write_doc(d, PROGRAM_ORG), base_dir=d)
            with mock.patch("exorg.exporter.weave", return_value=Path(d) / "program.pdf") as weave:
                assert exporter.export("PDF-minted") == [str(Path(d) / "program.pdf")]
            weave.assert_called_once()
            assert weave.call_args.kwargs["minted"] is True

    def test_other_formats_tangle(self):
        with tempfile.TemporaryDirectory() as d:
            exporter = Exporter.from_file(write_doc(d, PROGRAM_ORG), base_dir=d)
            assert exporter.export("rust") == [str(Path(d) / "program.rs")]


# --- CLI ---


class TestCli:
    def test_no_command(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_tangle(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, PROGRAM_ORG)
            assert main(["-C", d, "tangle", "python", "program.org", "-b", "main"]) == 0
            assert "Tangled 1 files." in capsys.readouterr().out
            assert read_lines(Path(d) / "program.py")[0] == "import sys"

    def test_tangle_dry_run(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, MULTI_FILE_ORG)
            assert main(["-C", d, "tangle", ".", "program.org", "--dry-run"]) == 0
            out = capsys.readouterr().out
            assert "Would write 3 files:" in out
            assert not (Path(d) / "a.out").exists()

    def test_tangle_error(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, PROGRAM_ORG)
            assert main(["-C", d, "tangle", "python", "program.org", "-b", "zzz"]) == 1
            assert "Error:" in capsys.readouterr().err

    def test_missing_document(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            assert main(["-C", d, "blocks", "missing.org"]) == 1
            assert "could not be opened" in capsys.readouterr().err

    def test_config_file(self):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, "#+BEGIN_SRC zig\nconst x = 1;\n#+END_SRC\n")
            cfg = Path(d) / "custom.toml"
            cfg.write_text('[languages]\nzig = "zig"\n')
            assert main(["-c", str(cfg), "-C", d, "tangle", "zig", "program.org"]) == 0
            assert (Path(d) / "program.zig").exists()

    def test_blocks(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, "#+SRC_LANG: nim nim\n" + PROGRAM_ORG)
            assert main(["-C", d, "blocks", "program.org"]) == 0
            out = capsys.readouterr().out
            assert "Code blocks: 4 (4 names)" in out
            assert "main [python] deps: greet" in out
            assert "nim: .nim" in out

    def test_blocks_destinations(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, MULTI_FILE_ORG)
            assert main(["-C", d, "blocks", "program.org"]) == 0
            out = capsys.readouterr().out
            assert "Destinations: 2" in out
            assert "  a.out\n" in out
            assert "  b.out\n" in out

    def test_blocks_by_name(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, PROGRAM_ORG)
            assert main(["-C", d, "blocks", "program.org", "greet"]) == 0
            assert capsys.readouterr().out == "def greet():\n    print(sys.argv)\n"

    def test_blocks_by_missing_name(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, PROGRAM_ORG)
            assert main(["-C", d, "blocks", "program.org", "gre"]) == 0
            assert "No code block named 'gre'." in capsys.readouterr().out

    def test_export_weave_failure(self, capsys):
        with tempfile.TemporaryDirectory() as d:
            write_doc(d, PROGRAM_ORG)
            with mock.patch("exorg.weave.subprocess.run", side_effect=FileNotFoundError("emacs")):
                assert main(["-C", d, "export", "pdf", "program.org"]) == 1
            assert "could not run emacs" in capsys.readouterr().err
