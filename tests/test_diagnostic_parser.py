"""
Unit Tests — Diagnostic Parser
==============================
Line shapes, path normalization, quarantine and noise tolerance.
"""
from healer.parser.diagnostic_parser import (
    normalize_path,
    parse_diagnostics,
    parse_output,
)


SAMPLE_OUTPUT = """
> web@1.0.0 type-check
> tsc --noEmit

src/components/App.tsx(3,10): error TS6133: '_foo' is declared but never used.
src/pages/Home.tsx(12,5): error TS2304: Cannot find name 'useEffect'.
Found 2 errors in 2 files.
"""


# ===========================================================================
# 1. Shapes
# ===========================================================================
class TestShapes:

    def test_single_unused_diagnostic(self):
        raw = "src/App.tsx(4,7): error TS6133: '_foo' is declared but never used."
        diagnostics = parse_diagnostics(raw)
        assert len(diagnostics) == 1
        d = diagnostics[0]
        assert d.file == "src/App.tsx"
        assert d.line == 4
        assert d.column == 7
        assert d.code == "TS6133"
        assert d.message == "'_foo' is declared but never used."
        assert d.raw_line == raw

    def test_pretty_shape(self):
        raw = "src/a.ts:12:5 - error TS2322: Type 'string' is not assignable to type 'number'."
        d = parse_diagnostics(raw)[0]
        assert (d.file, d.line, d.column, d.code) == ("src/a.ts", 12, 5, "TS2322")

    def test_ansi_colours_are_stripped(self):
        raw = "\x1b[96msrc/a.ts\x1b[0m:\x1b[93m1\x1b[0m:\x1b[93m2\x1b[0m - \x1b[91merror\x1b[0m TS1005: ';' expected."
        d = parse_diagnostics(raw)[0]
        assert d.file == "src/a.ts"
        assert d.code == "TS1005"

    def test_crlf_output(self):
        raw = "src/a.ts(1,1): error TS2304: Cannot find name 'x'.\r\nsrc/b.ts(2,1): error TS2304: Cannot find name 'y'.\r\n"
        diagnostics = parse_diagnostics(raw)
        assert [d.file for d in diagnostics] == ["src/a.ts", "src/b.ts"]
        assert diagnostics[1].message == "Cannot find name 'y'."

    def test_output_order_preserved(self):
        diagnostics = parse_diagnostics(SAMPLE_OUTPUT)
        assert [d.code for d in diagnostics] == ["TS6133", "TS2304"]

    def test_lowercase_code_normalised(self):
        d = parse_diagnostics("a.ts(1,1): error ts2304: Cannot find name 'x'.")[0]
        assert d.code == "TS2304"


# ===========================================================================
# 2. Noise and quarantine
# ===========================================================================
class TestNoise:

    def test_empty_output(self):
        assert parse_diagnostics("") == []
        assert parse_diagnostics("   \n\n") == []

    def test_neutral_output(self):
        assert parse_diagnostics("Done in 3.2s.\n") == []

    def test_summary_lines_ignored(self):
        result = parse_output(SAMPLE_OUTPUT)
        assert result.total == 2
        assert result.quarantined == []

    def test_malformed_error_line_quarantined(self):
        raw = "something odd: error TS2304 without position\nsrc/a.ts(1,1): error TS2304: Cannot find name 'x'."
        result = parse_output(raw)
        assert result.total == 1
        assert result.quarantined == ["something odd: error TS2304 without position"]

    def test_line_zero_rejected(self):
        result = parse_output("src/a.ts(0,1): error TS2304: Cannot find name 'x'.")
        assert result.total == 0

    def test_never_raises_on_garbage(self):
        assert parse_diagnostics("\x00\x01(((:::)))") == []


# ===========================================================================
# 3. Paths
# ===========================================================================
class TestNormalizePath:

    def test_backslashes(self):
        assert normalize_path("src\\components\\App.tsx") == "src/components/App.tsx"

    def test_project_root_stripped(self):
        assert normalize_path("/work/web/src/a.ts", "/work/web") == "src/a.ts"

    def test_windows_root_stripped(self):
        assert normalize_path("C:\\work\\web\\src\\a.ts", "C:\\work\\web") == "src/a.ts"

    def test_dot_slash_removed(self):
        assert normalize_path("./src/a.ts") == "src/a.ts"

    def test_foreign_absolute_path_kept(self):
        assert normalize_path("/elsewhere/a.ts", "/work/web") == "/elsewhere/a.ts"

    def test_parse_strips_root(self):
        raw = "/work/web/src/a.ts(1,1): error TS2304: Cannot find name 'x'."
        assert parse_diagnostics(raw, "/work/web")[0].file == "src/a.ts"
