"""
Tests for the lint engine and parallel analysis.

© 2024 Intel Corporation
SPDX-License-Identifier: Apache-2.0 and MIT
"""

import json
import random

from sv_style_checker.analysis import StyleAnalysis
from sv_style_checker.analysis.parsing import lex, parse
from sv_style_checker.config import Config, LintConfig
from sv_style_checker.lint import LintEngine, LintRuleLevel, check
from sv_style_checker.lint.rules import ALL_LINT_RULES, LintRule


EXPECTED_RULES = [
    "port_suffix", "signal_naming", "active_low_suffix", "declaration_alignment",
    "logical_operator", "implicit_truncation", "block_delimiter", "dangling_statement",
    "case_completeness", "assignment_discipline", "latch_default", "sensitivity_list",
    "dq_naming", "module_naming", "parameter_naming", "typedef_suffix", "legacy_always",
    "begin_placement", "long_lines", "no_tabs", "trailing_whitespace", "indentation",
]

# Touches many rules at once
MESSY = """module MessyModule (
  input  logic clk,
  input  logic rst_n,
  input  logic [7:0] bus_i,
  output logic flag_o
);
  logic validFlag;
  always @(posedge clk or negedge rst_n)
    validFlag = bus_i;
  always_comb begin
    if (validFlag) flag_o = bus_i;
  end
endmodule
"""


def make_engine(**lint_config):
    config = Config()
    config.lint_config = LintConfig.from_dict(lint_config)
    return LintEngine(config)


class ExplodingRule(LintRule):
    def __init__(self):
        super().__init__(name="exploding", description="Always fails")

    def check(self, tree, tokens):
        raise RuntimeError("boom")


class TestLintEngine:
    """Test rule registration and configuration."""

    def test_default_rules(self):
        """Every rule is registered in a fixed order; indentation starts disabled."""
        engine = LintEngine()
        assert [rule.name for rule in engine.rules] == EXPECTED_RULES
        assert len(ALL_LINT_RULES) == len(EXPECTED_RULES)
        assert [rule.name for rule in engine.rules if not rule.enabled] == ["indentation"]

    def test_rule_levels(self):
        """Correctness rules are errors, style rules are warnings."""
        info = LintEngine().get_rule_info()
        errors = sorted(name for name, rule in info.items() if rule["level"] == "error")
        assert errors == ["assignment_discipline", "latch_default", "sensitivity_list"]
        assert info["long_lines"]["description"]

    def test_config_disables_and_enables(self):
        """disabled_rules and enabled_rules toggle rules."""
        engine = make_engine(disabled_rules=["no_tabs"], enabled_rules=["indentation"])
        assert not engine.get_rule("no_tabs").enabled
        assert engine.get_rule("indentation").enabled

    def test_rule_configs(self):
        """Per-rule settings adjust level, enablement and rule attributes."""
        engine = make_engine(rule_configs={
            "long_lines": {"max_length": 80, "level": "error"},
            "indentation": {"enabled": True, "indent_size": "4"},
        })
        long_lines = engine.get_rule("long_lines")
        assert long_lines.max_length == 80
        assert long_lines.level is LintRuleLevel.ERROR
        indentation = engine.get_rule("indentation")
        assert indentation.enabled
        assert indentation.indent_size == 4

    def test_unknown_rule_and_setting_warn(self, caplog):
        """Unknown rules and settings are reported and otherwise ignored."""
        engine = make_engine(disabled_rules=["no_such_rule"], rule_configs={
            "long_lines": {"colour": "red", "max_length": "many"},
            "no_tabs": {"level": "fatal"},
        })
        assert "Unknown lint rule in configuration: no_such_rule" in caplog.text
        assert "Rule long_lines has no setting 'colour'" in caplog.text
        assert "Invalid value for long_lines.max_length" in caplog.text
        assert "Invalid level for rule no_tabs" in caplog.text
        assert engine.get_rule("long_lines").max_length == 100
        assert engine.get_rule("no_tabs").level is LintRuleLevel.WARNING

    def test_load_config(self, tmp_path):
        """Configuration files are loaded through the engine."""
        config_file = tmp_path / "lint.json"
        config_file.write_text(json.dumps({"rule_configs": {"long_lines": {"max_length": 60}}}))
        engine = LintEngine()
        engine.load_config(config_file)
        assert engine.get_rule("long_lines").max_length == 60


class TestLinting:
    """Test running the rules."""

    def test_failing_rule_does_not_stop_others(self, caplog):
        """A rule that raises is logged; the remaining rules still report."""
        engine = LintEngine()
        engine.rules.insert(0, ExplodingRule())
        diagnostics = engine.lint_file("messy.sv", MESSY)
        assert "Internal Error: Lint rule exploding failed on messy.sv: boom" in caplog.text
        assert any(diagnostic.rule_id == "module_naming" for diagnostic in diagnostics)

    def test_diagnostics_sorted(self):
        """Diagnostics come out ordered by line, column and rule id."""
        diagnostics = LintEngine().lint_file("messy.sv", MESSY)
        assert diagnostics
        keys = [diagnostic.sort_key for diagnostic in diagnostics]
        assert keys == sorted(keys)
        rule_ids = {diagnostic.rule_id for diagnostic in diagnostics}
        assert {"module_naming", "port_suffix", "signal_naming", "legacy_always",
                "implicit_truncation", "latch_default"} <= rule_ids

    def test_rule_order_does_not_matter(self):
        """Rules are independent: any registration order gives the same result."""
        tokens, _ = lex(MESSY, "messy.sv")
        trees, _ = parse(tokens, "messy.sv")
        engine = LintEngine()
        expected = engine.check(trees[0], tokens)

        shuffled = LintEngine()
        random.Random(7).shuffle(shuffled.rules)
        assert shuffled.check(trees[0], tokens) == expected
        shuffled.rules.reverse()
        assert shuffled.check(trees[0], tokens) == expected

    def test_module_level_check(self):
        """check() runs the default rule set over one tree."""
        tokens, _ = lex(MESSY)
        trees, _ = parse(tokens)
        assert check(trees[0], tokens) == LintEngine().check(trees[0], tokens)

    def test_disabled_rule_is_silent(self):
        """Disabled rules report nothing."""
        engine = make_engine(disabled_rules=["module_naming"])
        diagnostics = engine.lint_file("messy.sv", MESSY)
        assert all(diagnostic.rule_id != "module_naming" for diagnostic in diagnostics)

    def test_parse_errors_are_reported(self):
        """Parse errors are reported next to rule diagnostics."""
        source = "module bad_one;\n  logic BadName;\n  always_ff begin end\nendmodule\n"
        diagnostics = LintEngine().lint_file("bad.sv", source)
        rule_ids = [diagnostic.rule_id for diagnostic in diagnostics]
        assert "parse_error" in rule_ids
        assert "signal_naming" in rule_ids


class TestStyleAnalysis:
    """Test multi-file analysis."""

    def test_analyze_sources(self):
        """Files are analyzed independently and keyed by path."""
        sources = {
            f"file_{index}.sv": f"module file_{index};\n  logic BadName;\nendmodule\n"
            for index in range(8)
        }
        sources["broken.sv"] = 'module broken;\n  initial $display("oops);\nendmodule\n'
        analysis = StyleAnalysis(LintEngine().check, max_workers=4)
        results = analysis.analyze_sources(sources)
        assert set(results) == set(sources)
        for index in range(8):
            path = f"file_{index}.sv"
            assert [diagnostic.rule_id for diagnostic in results[path]] == ["signal_naming"]
            assert results[path][0].file_path == path
        assert [diagnostic.rule_id for diagnostic in results["broken.sv"]] == ["lex_error"]

    def test_parallel_matches_serial(self):
        """Worker count does not change the result."""
        sources = {"messy.sv": MESSY, "other.sv": MESSY.replace("MessyModule", "other_mod")}
        serial = StyleAnalysis(LintEngine().check, max_workers=1).analyze_sources(sources)
        parallel = StyleAnalysis(LintEngine().check, max_workers=4).analyze_sources(sources)
        assert serial == parallel

    def test_no_sources(self):
        assert StyleAnalysis(LintEngine().check).analyze_sources({}) == {}
