"""
Tests for the command line interface.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import json

import pytest
from click.testing import CliRunner

from sv_style_checker.analysis.types import Diagnostic, DiagnosticSeverity
from sv_style_checker.cmd import aggregate, analyze_single_file, build_engine
from sv_style_checker.main import main
from sv_style_checker.span import Position, Range, Span


BLOCKING_IN_FF = """module ff_blocking (
  input  logic       clk,
  input  logic       rst_n,
  output logic [7:0] counter
);
  always_ff @(posedge clk or negedge rst_n) begin
    if (!rst_n) counter = 0;
    else counter = counter + 1;
  end
endmodule
"""

CLEAN = """module clean_counter (
  input  logic       clk_i,
  input  logic       rst_ni,
  input  logic       en_i,
  output logic [7:0] count_o
);
  logic [7:0] count_d;
  logic [7:0] count_q;

  always_comb begin
    count_d = count_q;
    if (en_i) count_d = count_q + 8'd1;
  end

  always_ff @(posedge clk_i or negedge rst_ni) begin
    if (!rst_ni) begin
      count_q <= 8'd0;
    end else begin
      count_q <= count_d;
    end
  end

  assign count_o = count_q;
endmodule
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def blocking_file(tmp_path):
    path = tmp_path / "blocking.sv"
    path.write_text(BLOCKING_IN_FF)
    return path


@pytest.fixture
def clean_file(tmp_path):
    path = tmp_path / "clean.sv"
    path.write_text(CLEAN)
    return path


def make_diagnostic(rule_id, line, column, severity=DiagnosticSeverity.WARNING, path="a.sv"):
    span = Span(path, Range(Position(line, column), Position(line, column + 1)))
    return Diagnostic(rule_id, severity, span, f"{rule_id} message")


class TestCommandLine:
    """Test the svsc command."""

    def test_errors_set_exit_code(self, runner, blocking_file):
        """Error diagnostics are printed compiler style and fail the run."""
        result = runner.invoke(main, [str(blocking_file)])
        assert result.exit_code == 1
        assert f"{blocking_file}:7:" in result.output
        assert f"{blocking_file}:8:" in result.output
        assert "error:" in result.output
        assert "[assignment_discipline]" in result.output
        assert "Summary: 2 errors" in result.output

    def test_clean_file(self, runner, clean_file):
        """A clean file exits 0 with a success line."""
        result = runner.invoke(main, [str(clean_file)])
        assert result.exit_code == 0
        assert "All 1 files checked successfully" in result.output

    def test_json_output(self, runner, blocking_file):
        """JSON output is a list of diagnostic records."""
        result = runner.invoke(main, ["--format", "json", str(blocking_file)])
        assert result.exit_code == 1
        records = json.loads(result.stdout)
        errors = [record for record in records if record["severity"] == "error"]
        assert [record["line"] for record in errors] == [7, 8]
        assert all(record["file"] == str(blocking_file) for record in records)
        assert errors[0]["fix"]["replacement"] == "<="

    def test_severity_filter(self, runner, blocking_file):
        """--severity error hides warnings."""
        result = runner.invoke(main, ["--severity", "error", str(blocking_file)])
        assert result.exit_code == 1
        assert "[port_suffix]" not in result.output
        assert "Summary: 2 errors, 0 warnings in 1 files" in result.output

    def test_disable_rule(self, runner, blocking_file):
        """--disable turns rules off, and with them the exit status they caused."""
        result = runner.invoke(main, ["--disable", "assignment_discipline",
                                      "--disable", "port_suffix", str(blocking_file)])
        assert result.exit_code == 0
        assert "[assignment_discipline]" not in result.output
        assert "[port_suffix]" not in result.output

    def test_list_rules(self, runner):
        """--list-rules prints each rule with its level."""
        result = runner.invoke(main, ["--list-rules"])
        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert len(lines) == 22
        assert lines[0].split()[:2] == ["port_suffix", "warning"]
        assert any(line.split()[:2] == ["indentation", "disabled"] for line in lines)
        assert any(line.split()[:2] == ["latch_default", "error"] for line in lines)

    def test_lint_config(self, runner, tmp_path, blocking_file):
        """A lint configuration file adjusts the rules."""
        config_file = tmp_path / "lint.json"
        config_file.write_text(json.dumps({"disabled_rules": ["assignment_discipline"]}))
        result = runner.invoke(main, ["--lint-cfg", str(config_file), str(blocking_file)])
        assert result.exit_code == 0

    def test_bad_lint_config(self, runner, tmp_path, blocking_file):
        """An unreadable configuration is a usage error."""
        config_file = tmp_path / "lint.json"
        config_file.write_text("{not json")
        result = runner.invoke(main, ["--lint-cfg", str(config_file), str(blocking_file)])
        assert result.exit_code == 2

    def test_no_paths(self, runner):
        """Paths are required unless listing rules or serving."""
        result = runner.invoke(main, [])
        assert result.exit_code == 2
        assert "No paths given" in result.output

    def test_missing_path(self, runner, tmp_path):
        """Nonexistent paths are rejected by the argument parser."""
        result = runner.invoke(main, [str(tmp_path / "missing.sv")])
        assert result.exit_code == 2

    def test_directory_discovery(self, runner, tmp_path):
        """Directories are searched for HDL files only."""
        (tmp_path / "rtl").mkdir()
        (tmp_path / "rtl" / "clean.sv").write_text(CLEAN)
        (tmp_path / "rtl" / "notes.txt").write_text("not verilog")
        result = runner.invoke(main, ["--jobs", "2", str(tmp_path)])
        assert result.exit_code == 0
        assert "All 1 files checked successfully" in result.output

    def test_lex_error(self, runner, tmp_path):
        """A file that cannot be tokenized fails with a lex_error diagnostic."""
        path = tmp_path / "broken.sv"
        path.write_text('module broken;\n  initial $display("oops);\nendmodule\n')
        result = runner.invoke(main, [str(path)])
        assert result.exit_code == 1
        assert f"{path}:2:20: error: Unterminated string literal [lex_error]" in result.output

        result = runner.invoke(main, ["--best-effort", str(path)])
        assert result.exit_code == 1
        assert "[lex_error]" in result.output

    def test_version(self, runner):
        result = runner.invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestAggregation:
    """Test merging of per-file results."""

    def test_duplicates_collapse(self):
        """The same rule at the same place is reported once."""
        first = make_diagnostic("no_tabs", 3, 1)
        duplicate = make_diagnostic("no_tabs", 3, 1)
        other = make_diagnostic("long_lines", 3, 1)
        assert aggregate({"a.sv": [first, other, duplicate]}) == [other, first]

    def test_files_keep_their_order(self):
        """Files keep input order; each file's diagnostics are sorted."""
        a_late = make_diagnostic("no_tabs", 9, 1, path="a.sv")
        a_early = make_diagnostic("no_tabs", 1, 1, path="a.sv")
        b_first = make_diagnostic("no_tabs", 1, 1, path="b.sv")
        result = aggregate({"b.sv": [b_first], "a.sv": [a_late, a_early]})
        assert result == [b_first, a_early, a_late]

    def test_severity_and_disabled_filters(self):
        """Warnings drop below --severity error; disabled ids drop entirely."""
        warning = make_diagnostic("no_tabs", 1, 1)
        error = make_diagnostic("parse_error", 2, 1, DiagnosticSeverity.ERROR)
        results = {"a.sv": [warning, error]}
        assert aggregate(results, DiagnosticSeverity.ERROR) == [error]
        assert aggregate(results, disabled_rules=["parse_error"]) == [warning]

    def test_build_engine_disables(self, caplog):
        """--disable names rules; unknown names are warned about."""
        engine = build_engine(disabled_rules=["no_tabs", "parse_error", "bogus"])
        assert not engine.get_rule("no_tabs").enabled
        assert "Unknown rule passed to --disable: bogus" in caplog.text
        assert "parse_error" not in caplog.text

    def test_analyze_single_file(self, tmp_path):
        """A single file can be checked without printing."""
        path = tmp_path / "blocking.sv"
        path.write_text(BLOCKING_IN_FF)
        from_disk = analyze_single_file(path)
        in_memory = analyze_single_file(path, BLOCKING_IN_FF)
        assert from_disk == in_memory
        assert [d.line for d in from_disk if d.rule_id == "assignment_discipline"] == [7, 8]
