"""
Tests for the individual lint rules.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import pytest

from sv_style_checker.analysis.parsing import lex, parse
from sv_style_checker.analysis.types import DiagnosticSeverity
from sv_style_checker.lint import LintEngine
from sv_style_checker.lint.rules import (
    ActiveLowSuffixRule, AssignmentDisciplineRule, BeginPlacementRule, BlockDelimiterRule,
    CaseCompletenessRule, DanglingStatementRule, DeclarationAlignmentRule, DqNamingRule,
    ImplicitTruncationRule, IndentationRule, LatchDefaultRule, LegacyAlwaysRule,
    LogicalOperatorRule, LongLinesRule, ModuleNamingRule, NoTabsRule, ParameterNamingRule,
    PortSuffixRule, SensitivityListRule, SignalNamingRule, TrailingWhitespaceRule,
    TypedefSuffixRule,
)


def run_rule(rule, source, file_path="test.sv"):
    """Lex and parse source, which must be well formed, and apply one rule to every tree."""
    tokens, lex_error = lex(source, file_path)
    assert lex_error is None
    trees, errors = parse(tokens, file_path)
    assert errors == []
    diagnostics = []
    for tree in trees:
        diagnostics.extend(rule.check(tree, tokens))
    return sorted(diagnostics, key=lambda diagnostic: diagnostic.sort_key)


def run_engine(source, file_path="test.sv"):
    return LintEngine().lint_file(file_path, source)


# Nine header lines: the first body line is line 10
HEADER = """module rule_test (
  input  logic       clk_i,
  input  logic       rst_ni,
  input  logic       a_i,
  input  logic       b_i,
  input  logic [3:0] mask_i,
  input  logic [7:0] bus_i,
  output logic       y_o
);
"""


def in_module(body):
    return HEADER + body + "endmodule\n"


CLEAN_COUNTER = """module clean_counter (
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


class TestScenarios:
    """End-to-end scenarios through the default rule set."""

    def test_conforming_module_is_clean(self):
        """A module following every convention produces no diagnostics."""
        source = (
            "module suffix_passes (\n"
            "  output logic [7:0] data_o\n"
            ");\n"
            "  logic [3:0] a;\n"
            "  assign data_o = a;\n"
            "endmodule\n"
        )
        assert run_engine(source) == []

    def test_clean_counter(self):
        """A register with reset, next-state logic and output produces no diagnostics."""
        assert run_engine(CLEAN_COUNTER) == []

    def test_missing_default_infers_latch(self):
        """An if without a preceding default in always_comb is a latch."""
        source = (
            "module latch_guard (\n"
            "  input  logic       en_i,\n"
            "  output logic [2:0] value_o\n"
            ");\n"
            "  logic [2:0] value;\n"
            "  always_comb begin\n"
            "    if (en_i) value = 3'd5;\n"
            "  end\n"
            "  assign value_o = value;\n"
            "endmodule\n"
        )
        diagnostics = run_engine(source)
        assert len(diagnostics) == 1
        diagnostic = diagnostics[0]
        assert diagnostic.rule_id == "latch_default"
        assert diagnostic.severity is DiagnosticSeverity.ERROR
        assert (diagnostic.line, diagnostic.column) == (7, 5)
        assert "'value'" in diagnostic.message

    def test_blocking_assignment_in_always_ff(self):
        """Blocking assignments in always_ff are errors with a '<=' fix."""
        source = (
            "module ff_blocking (\n"
            "  input  logic       clk,\n"
            "  input  logic       rst_n,\n"
            "  output logic [7:0] counter\n"
            ");\n"
            "  always_ff @(posedge clk or negedge rst_n) begin\n"
            "    if (!rst_n) counter = 0;\n"
            "    else counter = counter + 1;\n"
            "  end\n"
            "endmodule\n"
        )
        diagnostics = run_rule(AssignmentDisciplineRule(), source)
        assert [diagnostic.line for diagnostic in diagnostics] == [7, 8]
        assert all(diagnostic.severity is DiagnosticSeverity.ERROR for diagnostic in diagnostics)
        assert [diagnostic.fix.replacement for diagnostic in diagnostics] == ['<=', '<=']

        # The reset is handled properly, so the sensitivity list is fine
        assert run_rule(SensitivityListRule(), source) == []

    def test_misaligned_declarations(self):
        """The name that starts one column early is moved to the common column."""
        source = (
            "module misaligned_decls;\n"
            "  logic [7:0] bus_strb;\n"
            "  logic [31:0] bus_addr;\n"
            "endmodule\n"
        )
        diagnostics = run_rule(DeclarationAlignmentRule(), source)
        assert len(diagnostics) == 1
        diagnostic = diagnostics[0]
        assert (diagnostic.line, diagnostic.column) == (2, 15)
        assert "column 16" in diagnostic.message
        assert diagnostic.fix.replacement == "  "

        aligned = source.replace("[7:0] bus_strb", "[7:0]  bus_strb")
        assert run_rule(DeclarationAlignmentRule(), aligned) == []

    def test_port_on_module_line_is_not_aligned(self):
        """A port opening the header line does not set the column for the rest."""
        source = (
            "module header_port (input logic clk_i,\n"
            "  input  logic       rst_ni,\n"
            "  output logic [7:0] data_o\n"
            ");\n"
            "endmodule\n"
        )
        assert run_rule(DeclarationAlignmentRule(), source) == []


class TestNamingRules:
    """Test naming convention rules."""

    def test_port_suffix(self):
        """Ports are named after their direction, with the polarity glued on."""
        source = (
            "module ports (\n"
            "  input  logic clk,\n"
            "  input  logic rst_n_i,\n"
            "  output logic data_i,\n"
            "  inout  wire  pad_io\n"
            ");\n"
            "endmodule\n"
        )
        diagnostics = run_rule(PortSuffixRule(), source)
        assert [diagnostic.fix.replacement for diagnostic in diagnostics] == [
            'clk_i', 'rst_ni', 'data_o',
        ]
        assert "missing the '_i' suffix" in diagnostics[0].message
        assert "polarity marker" in diagnostics[1].message
        assert "ends in '_i'" in diagnostics[2].message

    def test_signal_naming(self):
        """Internal signals are lower_snake_case."""
        source = (
            "module signals;\n"
            "  logic validFlag;\n"
            "  logic Data;\n"
            "  logic ready_q;\n"
            "endmodule\n"
        )
        diagnostics = run_rule(SignalNamingRule(), source)
        assert [diagnostic.line for diagnostic in diagnostics] == [2, 3]
        assert "'validFlag'" in diagnostics[0].message

    def test_active_low_port(self):
        """A port reset on negedge and tested low needs the n marker."""
        source = (
            "module active_low (\n"
            "  input  logic clk_i,\n"
            "  input  logic rst_i\n"
            ");\n"
            "  logic q;\n"
            "  always_ff @(posedge clk_i or negedge rst_i) begin\n"
            "    if (!rst_i) q <= 1'b0;\n"
            "    else q <= 1'b1;\n"
            "  end\n"
            "endmodule\n"
        )
        diagnostics = run_rule(ActiveLowSuffixRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 3
        assert diagnostics[0].fix.replacement == 'rst_ni'

    def test_active_low_already_marked(self):
        """Properly marked resets pass."""
        assert run_rule(ActiveLowSuffixRule(), CLEAN_COUNTER) == []

    def test_active_high_reset_needs_no_marker(self):
        """A reset on posedge tested high is active-high and keeps its name."""
        source = (
            "module active_high (\n"
            "  input  logic clk_i,\n"
            "  input  logic rst_i\n"
            ");\n"
            "  logic q;\n"
            "  always_ff @(posedge clk_i or posedge rst_i) begin\n"
            "    if (rst_i) q <= 1'b0;\n"
            "    else q <= 1'b1;\n"
            "  end\n"
            "endmodule\n"
        )
        assert run_rule(ActiveLowSuffixRule(), source) == []

    def test_dq_naming(self):
        """Registers end in _q and are loaded from the matching _d."""
        source = (
            "module dq_test (\n"
            "  input  logic clk_i,\n"
            "  input  logic other_d\n"
            ");\n"
            "  logic level_q;\n"
            "  logic state_q;\n"
            "  logic data;\n"
            "  always_ff @(posedge clk_i) begin\n"
            "    level_q <= other_d;\n"
            "    state_q <= 1'b0;\n"
            "    data <= other_d;\n"
            "  end\n"
            "endmodule\n"
        )
        diagnostics = run_rule(DqNamingRule(), source)
        assert len(diagnostics) == 3
        by_line = {diagnostic.line: diagnostic for diagnostic in diagnostics}
        assert "expected 'level_d'" in by_line[9].message
        assert "never loaded from 'state_d'" in by_line[10].message
        assert by_line[11].fix.replacement == 'other_q'

    def test_dq_naming_pairs(self):
        """A register loaded from its _d signal passes."""
        assert run_rule(DqNamingRule(), CLEAN_COUNTER) == []

    def test_module_naming(self):
        """Module names are lower_snake_case."""
        diagnostics = run_rule(ModuleNamingRule(), "module MyModule;\nendmodule\n")
        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (1, 8)
        assert run_rule(ModuleNamingRule(), "module my_module;\nendmodule\n") == []

    def test_parameter_naming(self):
        """Parameters are UpperCamelCase, ALL_CAPS is tolerated."""
        source = (
            "module params #(parameter int Width = 8, parameter int bad_name = 1);\n"
            "  localparam int lowerLocal = 2;\n"
            "  localparam int MAX_DEPTH = 4;\n"
            "endmodule\n"
        )
        diagnostics = run_rule(ParameterNamingRule(), source)
        assert len(diagnostics) == 2
        assert "'bad_name'" in diagnostics[0].message
        assert diagnostics[1].message.startswith("Localparam 'lowerLocal'")

    def test_typedef_suffix(self):
        """Enums end in _e and other types in _t; package types are reported once."""
        source = (
            "package defs_pkg;\n"
            "  typedef enum logic [1:0] {ModeA, ModeB} mode_t;\n"
            "endpackage\n"
            "module first;\n"
            "  typedef logic [7:0] byte_e;\n"
            "  typedef logic [3:0] nibble_t;\n"
            "endmodule\n"
            "module second;\n"
            "endmodule\n"
        )
        diagnostics = run_rule(TypedefSuffixRule(), source)
        assert [diagnostic.line for diagnostic in diagnostics] == [2, 5]
        assert diagnostics[0].message == "Enum type 'mode_t' must end in '_e'"
        assert diagnostics[1].message == "Type 'byte_e' must end in '_t'"


class TestOperatorRules:
    """Test bitwise/logical operator and truncation rules."""

    def test_bitwise_operator_on_booleans(self):
        """& and | between single-bit operands suggest && and ||."""
        source = in_module(
            "  logic w;\n"
            "  logic [3:0] z;\n"
            "  logic t;\n"
            "  assign y_o = a_i & b_i;\n"
            "  assign w = ~a_i | b_i;\n"
            "  assign z = mask_i & 4'hF;\n"
            "  assign t = a_i ? b_i : 1'b0;\n"
        )
        diagnostics = run_rule(LogicalOperatorRule(), source)
        assert [diagnostic.line for diagnostic in diagnostics] == [13, 14]
        assert diagnostics[0].fix.replacement == '&&'
        assert diagnostics[1].fix.replacement == '||'
        assert (diagnostics[0].line, diagnostics[0].column) == (13, 20)

    def test_bitwise_operator_in_condition(self):
        """Conditions combining a bit and a comparison use ||."""
        source = in_module(
            "  logic w;\n"
            "  always_comb begin\n"
            "    w = 1'b0;\n"
            "    if (a_i | (mask_i == 4'd0)) w = 1'b1;\n"
            "  end\n"
        )
        diagnostics = run_rule(LogicalOperatorRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 13
        assert diagnostics[0].fix.replacement == '||'

    def test_constant_bit_selects_are_single_bit(self):
        """Single-bit selects are boolean operands; wider part-selects are not."""
        source = in_module(
            "  logic w;\n"
            "  always_comb begin\n"
            "    w = 1'b0;\n"
            "    if (mask_i[0] & mask_i[1]) w = 1'b1;\n"
            "    if (mask_i[1:0] & mask_i[3:2]) w = 1'b0;\n"
            "  end\n"
        )
        diagnostics = run_rule(LogicalOperatorRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 13
        assert diagnostics[0].fix.replacement == '&&'

    def test_implicit_truncation(self):
        """Multi-bit values assigned to single bits are flagged unless reduced."""
        source = in_module(
            "  logic flag;\n"
            "  logic part;\n"
            "  logic cat;\n"
            "  logic bit3;\n"
            "  logic any_set;\n"
            "  logic non_zero;\n"
            "  assign flag = bus_i;\n"
            "  assign part = bus_i[3:2];\n"
            "  assign cat = {a_i, a_i};\n"
            "  assign bit3 = bus_i[3];\n"
            "  assign any_set = |bus_i;\n"
            "  assign non_zero = bus_i != 8'd0;\n"
        )
        diagnostics = run_rule(ImplicitTruncationRule(), source)
        assert [diagnostic.line for diagnostic in diagnostics] == [16, 17, 18]
        assert diagnostics[0].message.startswith("8-bit value assigned to 1-bit 'flag'")
        assert diagnostics[1].message.startswith("2-bit value")
        assert diagnostics[2].message.startswith("2-bit value")


class TestBlockRules:
    """Test begin/end structure rules."""

    def test_multiline_case_item_needs_begin(self):
        """A case item statement spanning lines must be delimited."""
        source = in_module(
            "  logic [1:0] sel;\n"
            "  always_comb begin\n"
            "    case (sel)\n"
            "      2'b00: y_o =\n"
            "        a_i;\n"
            "      default: y_o = 1'b0;\n"
            "    endcase\n"
            "  end\n"
        )
        diagnostics = run_rule(BlockDelimiterRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 13
        assert "case item" in diagnostics[0].message

    def test_module_level_begin(self):
        """begin/end does not wrap module items."""
        source = (
            "module wrapped;\n"
            "  logic a;\n"
            "  begin\n"
            "    assign a = 1'b0;\n"
            "  end\n"
            "endmodule\n"
        )
        diagnostics = run_rule(BlockDelimiterRule(), source)
        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (3, 3)
        assert "'module' bodies" in diagnostics[0].message

    def test_case_items_wrapped_in_begin(self):
        """The item list of a case is not wrapped in begin/end."""
        source = in_module(
            "  logic [1:0] sel;\n"
            "  always_comb begin\n"
            "    case (sel) begin\n"
            "      2'b00: y_o = a_i;\n"
            "      default: y_o = b_i;\n"
            "    end\n"
            "    endcase\n"
            "  end\n"
        )
        diagnostics = run_rule(BlockDelimiterRule(), source)
        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (12, 5)
        assert diagnostics[0].message == "'case' items are not wrapped in begin/end"

    def test_function_body_is_not_delimited(self):
        """Function bodies do not use begin/end."""
        source = (
            "module funcs;\n"
            "  function automatic logic parity(input logic [7:0] v);\n"
            "    begin\n"
            "      return ^v;\n"
            "    end\n"
            "  endfunction\n"
            "endmodule\n"
        )
        diagnostics = run_rule(BlockDelimiterRule(), source)
        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (3, 5)

    def test_multiline_if_body_on_header_line(self):
        """An if body that starts on the header line and continues must be delimited."""
        source = in_module(
            "  logic w;\n"
            "  always_comb begin\n"
            "    w = 1'b0;\n"
            "    if (a_i) w = a_i ^\n"
            "      b_i;\n"
            "  end\n"
        )
        diagnostics = run_rule(BlockDelimiterRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 13

    def test_dangling_statements(self):
        """Undelimited branches on the line after their header are flagged."""
        source = in_module(
            "  logic w;\n"
            "  always_comb begin\n"
            "    w = 1'b0;\n"
            "    if (a_i)\n"
            "      w = 1'b1;\n"
            "    else\n"
            "      w = b_i;\n"
            "  end\n"
        )
        diagnostics = run_rule(DanglingStatementRule(), source)
        assert [diagnostic.line for diagnostic in diagnostics] == [14, 16]
        assert "'if'" in diagnostics[0].message
        assert "'else'" in diagnostics[1].message

    def test_else_if_chain_is_not_dangling(self):
        """else if chains are not dangling statements."""
        source = in_module(
            "  logic w;\n"
            "  always_comb begin\n"
            "    w = 1'b0;\n"
            "    if (a_i) w = 1'b1;\n"
            "    else if (b_i) w = 1'b0;\n"
            "    else w = a_i;\n"
            "  end\n"
        )
        assert run_rule(DanglingStatementRule(), source) == []
        assert run_rule(BlockDelimiterRule(), source) == []

    def test_begin_placement(self):
        """begin stays on the line of its construct."""
        source = in_module(
            "  logic w;\n"
            "  always_comb\n"
            "  begin\n"
            "    w = a_i;\n"
            "  end\n"
        )
        diagnostics = run_rule(BeginPlacementRule(), source)
        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (12, 3)
        assert run_rule(BeginPlacementRule(), CLEAN_COUNTER) == []


class TestCaseCompleteness:
    """Test the case default rule."""

    ENUM_CASE = (
        "module enum_case;\n"
        "  typedef enum logic [1:0] {{Idle, Receive, Done}} state_e;\n"
        "  state_e state;\n"
        "  logic [1:0] x;\n"
        "  always_comb begin\n"
        "    x = 0;\n"
        "    unique case (state)\n"
        "      Idle: x = 1;\n"
        "      Receive: x = 2;\n"
        "{extra}"
        "    endcase\n"
        "  end\n"
        "endmodule\n"
    )

    def test_enum_case_missing_member(self):
        """A case over an enum that skips a member needs a default."""
        diagnostics = run_rule(CaseCompletenessRule(), self.ENUM_CASE.format(extra=""))
        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (7, 5)
        assert diagnostics[0].severity is DiagnosticSeverity.WARNING
        assert "'unique case'" in diagnostics[0].message

    def test_enum_case_covering_all_members(self):
        """Naming every member proves the case exhaustive."""
        source = self.ENUM_CASE.format(extra="      Done: x = 3;\n")
        assert run_rule(CaseCompletenessRule(), source) == []

    def test_numeric_case(self):
        """Narrow subjects are exhaustive when every value has a label."""
        labels = ["2'b00", "2'b01", "2'b10", "2'b11"]

        def source(used):
            items = "".join(f"      {label}: x = 1'b1;\n" for label in used)
            return in_module(
                "  logic [1:0] sel;\n"
                "  logic x;\n"
                "  always_comb begin\n"
                "    x = 1'b0;\n"
                "    case (sel)\n"
                f"{items}"
                "    endcase\n"
                "  end\n"
            )

        assert run_rule(CaseCompletenessRule(), source(labels)) == []
        assert len(run_rule(CaseCompletenessRule(), source(labels[:3]))) == 1

    def test_empty_default(self):
        """An empty default arm is flagged where it stands."""
        source = in_module(
            "  logic [1:0] sel;\n"
            "  logic x;\n"
            "  always_comb begin\n"
            "    x = 1'b0;\n"
            "    case (sel)\n"
            "      2'b00: x = 1'b1;\n"
            "      default: ;\n"
            "    endcase\n"
            "  end\n"
        )
        diagnostics = run_rule(CaseCompletenessRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 16
        assert diagnostics[0].message.startswith("Empty default arm")


class TestProcedureRules:
    """Test procedure rules."""

    def test_nonblocking_in_always_comb(self):
        """always_comb uses blocking assignments."""
        source = in_module(
            "  logic w;\n"
            "  always_comb begin\n"
            "    w <= a_i;\n"
            "  end\n"
        )
        diagnostics = run_rule(AssignmentDisciplineRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].fix.replacement == '='

    def test_latch_default_satisfied(self):
        """A default before the conditional removes the latch."""
        assert run_rule(LatchDefaultRule(), CLEAN_COUNTER) == []

    def test_latch_default_for_case(self):
        """Conditional assignments in case arms need a default too."""
        source = in_module(
            "  logic [1:0] sel;\n"
            "  logic x;\n"
            "  logic v;\n"
            "  always_comb begin\n"
            "    v = 1'b0;\n"
            "    case (sel)\n"
            "      2'b00: begin x = 1'b1; v = 1'b1; end\n"
            "      default: x = 1'b0;\n"
            "    endcase\n"
            "  end\n"
        )
        diagnostics = run_rule(LatchDefaultRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 15
        assert "'x'" in diagnostics[0].message
        assert "'v'" not in diagnostics[0].message

    def test_legacy_always(self):
        """Plain always blocks suggest their modern replacement."""
        source = in_module(
            "  logic q;\n"
            "  logic w;\n"
            "  always @(posedge clk_i) q <= a_i;\n"
            "  always @(*) w = b_i;\n"
        )
        diagnostics = run_rule(LegacyAlwaysRule(), source)
        assert len(diagnostics) == 2
        assert "'always_ff'" in diagnostics[0].message
        assert "'always_comb'" in diagnostics[1].message
        assert (diagnostics[0].line, diagnostics[0].column) == (12, 3)

    def _sensitivity(self, event_list, body):
        return in_module(
            "  logic q;\n"
            f"  always_ff @({event_list}) begin\n"
            f"    {body}\n"
            "  end\n"
        )

    @pytest.mark.parametrize("separator", ["|", "||"])
    def test_sensitivity_separator(self, separator):
        """Events are joined with 'or'."""
        source = self._sensitivity(f"posedge clk_i {separator} negedge rst_ni",
                                   "if (!rst_ni) q <= 1'b0; else q <= a_i;")
        diagnostics = run_rule(SensitivityListRule(), source)
        assert len(diagnostics) == 1
        assert f"not '{separator}'" in diagnostics[0].message
        assert diagnostics[0].fix.replacement == 'or'
        assert diagnostics[0].severity is DiagnosticSeverity.ERROR

    def test_unhandled_reset(self):
        """A reset in the list must be tested first."""
        source = self._sensitivity("posedge clk_i or negedge rst_ni", "q <= a_i;")
        diagnostics = run_rule(SensitivityListRule(), source)
        assert len(diagnostics) == 1
        assert "'if (!rst_ni)'" in diagnostics[0].message

    def test_reset_tested_with_wrong_polarity(self):
        """A negedge reset tested high is not handled."""
        source = self._sensitivity("posedge clk_i or negedge rst_ni",
                                   "if (rst_ni) q <= 1'b0; else q <= a_i;")
        assert len(run_rule(SensitivityListRule(), source)) == 1

    def test_no_clock_edge(self):
        """A list holding only resets has no clock."""
        source = self._sensitivity("negedge rst_ni", "if (!rst_ni) q <= 1'b0;")
        diagnostics = run_rule(SensitivityListRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].message == "always_ff sensitivity list has no clock edge"

    def test_level_sensitive_event(self):
        """always_ff events carry an edge."""
        source = self._sensitivity("posedge clk_i or a_i", "q <= b_i;")
        diagnostics = run_rule(SensitivityListRule(), source)
        assert len(diagnostics) == 1
        assert "Level-sensitive event 'a_i'" in diagnostics[0].message


class TestFormattingRules:
    """Test token-level formatting rules."""

    def test_long_lines(self):
        """Lines above the limit are reported from the first extra column."""
        diagnostics = run_rule(LongLinesRule(max_length=20), "module long_lines_test;\nendmodule\n")
        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (1, 21)
        assert run_rule(LongLinesRule(), "module long_lines_test;\nendmodule\n") == []

    def test_no_tabs(self):
        """Tabs used for spacing are reported; tabs in comments are not."""
        source = "module tabs;\n\tlogic a;\n  // a\tcomment\nendmodule\n"
        diagnostics = run_rule(NoTabsRule(), source)
        assert len(diagnostics) == 1
        assert (diagnostics[0].line, diagnostics[0].column) == (2, 1)

    def test_trailing_whitespace(self):
        """Trailing spaces after code and after comments are removed by the fix."""
        source = "module ws;  \n  logic a; // note  \nendmodule\n"
        diagnostics = run_rule(TrailingWhitespaceRule(), source)
        assert [(diagnostic.line, diagnostic.column) for diagnostic in diagnostics] == [
            (1, 11), (2, 19),
        ]
        assert all(diagnostic.fix.replacement == '' for diagnostic in diagnostics)

    def test_indentation(self):
        """Indentation is a multiple of the indent size."""
        source = "module ind;\n   logic a;\n  logic b;\nendmodule\n"
        diagnostics = run_rule(IndentationRule(), source)
        assert len(diagnostics) == 1
        assert diagnostics[0].line == 2
        assert run_rule(IndentationRule(indent_size=3), source)[0].line == 3

    def test_lines_reported_once_across_modules(self):
        """Each module tree reports only the lines it owns."""
        source = "module one;  \nendmodule\nmodule two;  \nendmodule\n"
        diagnostics = run_rule(TrailingWhitespaceRule(), source)
        assert [diagnostic.line for diagnostic in diagnostics] == [1, 3]
