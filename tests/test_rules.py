"""Tests for stylewarden.analysis.rules - stylewarden.yml parsing and validation."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from stylewarden.analysis.rules import (
    DEFAULT_DEBUG_DIRECTIVE,
    QUERYABLE_BASE,
    BaseTypeRef,
    DirectiveBanRule,
    FieldNamingRule,
    LengthRule,
    Location,
    ReturnTypeShapeRule,
    SetterVisibilityRule,
    Violation,
    default_rules,
    load_rules,
    parse_rules,
    rule_type,
    validate_rules,
)
from stylewarden.model.elements import ElementKind
from stylewarden.model.metadata import AssemblyUnit, MetadataGraph

if TYPE_CHECKING:
    from pathlib import Path


def _write(tmp_path: Path, text: str) -> Path:
    rules_path = tmp_path / "stylewarden.yml"
    rules_path.write_text(text)
    return rules_path


# ---------------------------------------------------------------------------
# TestDefaultRules
# ---------------------------------------------------------------------------


class TestDefaultRules:
    """Tests for default_rules() - the standard rule set."""

    def test_six_rules_in_order(self) -> None:
        names = [rule.name for rule in default_rules()]
        assert names == [
            "FieldNamesMustBeginWithUnderscore",
            "TooLongMethod",
            "TooLongClass",
            "AvoidDebugDirective",
            "EntitiesShouldNotHavePublicSetters",
            "RepositoriesShouldNotReturnIQueryable",
        ]

    def test_length_defaults(self) -> None:
        length_rules = [r for r in default_rules() if isinstance(r, LengthRule)]
        assert [(r.kind, r.threshold) for r in length_rules] == [
            (ElementKind.METHOD, 50),
            (ElementKind.CLASS, 500),
        ]

    def test_rule_types(self) -> None:
        assert [rule_type(r) for r in default_rules()] == [
            "field_naming",
            "max_length",
            "max_length",
            "forbid_directive",
            "forbid_public_setters",
            "forbid_queryable_return",
        ]

    def test_type_rules_default_to_warn(self) -> None:
        assert SetterVisibilityRule().severity == "warn"
        assert ReturnTypeShapeRule().severity == "warn"


# ---------------------------------------------------------------------------
# TestLoadRules - parsing stylewarden.yml
# ---------------------------------------------------------------------------


class TestLoadRules:
    """Tests for load_rules() - YAML parsing and schema validation."""

    def test_parse_every_block(self, tmp_path: Path) -> None:
        rules_path = _write(
            tmp_path,
            "version: 1\n"
            "rules:\n"
            "  - name: Fields\n"
            "    field_naming: {}\n"
            "  - name: ShortClasses\n"
            '    description: "Classes must stay short"\n'
            "    severity: warn\n"
            "    max_length: { kind: class, threshold: 300 }\n"
            "  - name: NoDebug\n"
            "    forbid_directive:\n"
            "  - name: NoSetters\n"
            "    forbid_public_setters:\n"
            "      base: { assembly: Acme.Domain, type: Acme.Domain.Entity }\n"
            "  - name: NoQueryables\n"
            "    forbid_queryable_return:\n"
            "      base: { assembly: Acme.Domain, type: Acme.Domain.Repository }\n",
        )
        rules = load_rules(rules_path)
        assert len(rules) == 5

        fields, short, debug, setters, queryables = rules
        assert isinstance(fields, FieldNamingRule)
        assert fields.prefix == "_"

        assert isinstance(short, LengthRule)
        assert short.kind is ElementKind.CLASS
        assert short.threshold == 300
        assert short.severity == "warn"
        assert short.description == "Classes must stay short"

        assert isinstance(debug, DirectiveBanRule)
        assert debug.directive == DEFAULT_DEBUG_DIRECTIVE

        assert isinstance(setters, SetterVisibilityRule)
        assert setters.base == BaseTypeRef("Acme.Domain", "Acme.Domain.Entity")
        assert setters.severity == "error"

        assert isinstance(queryables, ReturnTypeShapeRule)
        assert queryables.queryable == QUERYABLE_BASE
        assert queryables.marker == "IQueryable"

    def test_queryable_null_disables_inheritance_check(self, tmp_path: Path) -> None:
        rules_path = _write(
            tmp_path,
            "version: 1\n"
            "rules:\n"
            "  - name: NoQueryables\n"
            "    forbid_queryable_return:\n"
            "      base: { assembly: Acme, type: Acme.Repository }\n"
            "      queryable: null\n"
            "      name_contains: Queryable\n",
        )
        (rule,) = load_rules(rules_path)
        assert isinstance(rule, ReturnTypeShapeRule)
        assert rule.queryable is None
        assert rule.marker == "Queryable"

    def test_empty_rules_list(self, tmp_path: Path) -> None:
        assert load_rules(_write(tmp_path, "version: 1\nrules: []\n")) == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_rules(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="invalid YAML"):
            load_rules(_write(tmp_path, "version: 1\nrules: [\n"))

    def test_missing_version(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="missing required 'version'"):
            load_rules(_write(tmp_path, "rules: []\n"))

    def test_unsupported_version(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="unsupported version 7"):
            load_rules(_write(tmp_path, "version: 7\nrules: []\n"))

    def test_duplicate_names(self, tmp_path: Path) -> None:
        rules_path = _write(
            tmp_path,
            "version: 1\n"
            "rules:\n"
            "  - name: Fields\n"
            "    field_naming: {}\n"
            "  - name: Fields\n"
            "    field_naming: {}\n",
        )
        with pytest.raises(ValueError, match="Duplicate rule name 'Fields'"):
            load_rules(rules_path)

    def test_invalid_severity(self, tmp_path: Path) -> None:
        rules_path = _write(
            tmp_path,
            "version: 1\n"
            "rules:\n"
            "  - name: Fields\n"
            "    severity: fatal\n"
            "    field_naming: {}\n",
        )
        with pytest.raises(ValueError, match="invalid severity 'fatal'"):
            load_rules(rules_path)

    def test_two_blocks_rejected(self, tmp_path: Path) -> None:
        rules_path = _write(
            tmp_path,
            "version: 1\n"
            "rules:\n"
            "  - name: Mixed\n"
            "    field_naming: {}\n"
            "    forbid_directive: {}\n",
        )
        with pytest.raises(ValueError, match="exactly one of"):
            load_rules(rules_path)

    def test_no_block_rejected(self, tmp_path: Path) -> None:
        rules_path = _write(tmp_path, "version: 1\nrules:\n  - name: Empty\n")
        with pytest.raises(ValueError, match="exactly one of"):
            load_rules(rules_path)

    @pytest.mark.parametrize(
        ("block", "message"),
        [
            ("{ threshold: 10 }", "max_length.kind is required"),
            ("{ kind: namespace, threshold: 10 }", "invalid kind 'namespace'"),
            ("{ kind: method, threshold: ten }", "threshold must be an integer"),
            ("{ kind: method, threshold: 0 }", "threshold must be positive"),
            ("{ kind: method, threshold: true }", "threshold must be an integer"),
        ],
    )
    def test_invalid_length_block(self, tmp_path: Path, block: str, message: str) -> None:
        rules_path = _write(
            tmp_path,
            f"version: 1\nrules:\n  - name: Long\n    max_length: {block}\n",
        )
        with pytest.raises(ValueError, match=message):
            load_rules(rules_path)

    def test_base_requires_assembly_and_type(self, tmp_path: Path) -> None:
        rules_path = _write(
            tmp_path,
            "version: 1\n"
            "rules:\n"
            "  - name: NoSetters\n"
            "    forbid_public_setters:\n"
            "      base: { assembly: Acme }\n",
        )
        with pytest.raises(ValueError, match="'type' must be a non-empty string"):
            load_rules(rules_path)

    def test_missing_base(self, tmp_path: Path) -> None:
        rules_path = _write(
            tmp_path,
            "version: 1\nrules:\n  - name: NoSetters\n    forbid_public_setters: {}\n",
        )
        with pytest.raises(ValueError, match="must be a mapping with 'assembly' and 'type'"):
            load_rules(rules_path)

    def test_parse_rules_rejects_non_mapping(self) -> None:
        with pytest.raises(ValueError, match="must be a YAML mapping"):
            parse_rules(["version", 1])


# ---------------------------------------------------------------------------
# TestValidateRules
# ---------------------------------------------------------------------------


class TestValidateRules:
    """Tests for validate_rules() - base assembly prefixes against the graph."""

    def test_defaults_match_graph(self, graph: MetadataGraph) -> None:
        assert validate_rules(default_rules(), graph) == []

    def test_unknown_prefix_warns(self, graph: MetadataGraph) -> None:
        rule = SetterVisibilityRule(base=BaseTypeRef("Contoso", "Contoso.Entity"))
        warnings = validate_rules([rule], graph)
        assert len(warnings) == 1
        assert "'Contoso'" in warnings[0]
        assert rule.name in warnings[0]

    def test_element_rules_ignored(self, graph: MetadataGraph) -> None:
        assert validate_rules([FieldNamingRule(), DirectiveBanRule()], graph) == []

    def test_indirect_reference_warns(self) -> None:
        library = AssemblyUnit(name="Lib")
        middle = AssemblyUnit(name="Middle", references=[library])
        domain = AssemblyUnit(name="Domain", references=[middle])
        graph = MetadataGraph([library, middle, domain])
        rule = SetterVisibilityRule(base=BaseTypeRef("Lib", "Lib.Entity"))
        warnings = validate_rules([rule], graph)
        assert warnings == [
            "Assembly 'Domain' reaches 'Lib' only through indirect references; "
            f"rule '{rule.name}' will not apply to its types"
        ]

    def test_unreachable_assembly_not_reported(self) -> None:
        library = AssemblyUnit(name="Lib")
        other = AssemblyUnit(name="Other")
        rule = SetterVisibilityRule(base=BaseTypeRef("Lib", "Lib.Entity"))
        assert validate_rules([rule], MetadataGraph([library, other])) == []


# ---------------------------------------------------------------------------
# TestViolation
# ---------------------------------------------------------------------------


class TestViolation:
    """Tests for Violation message rendering."""

    def test_message_rendered_from_template(self) -> None:
        violation = Violation(
            rule_name="R",
            rule_type="field_naming",
            severity="error",
            location=Location(path="a.cs", line=3, subject="Order.total"),
            template="The field {0} must begin with an underscore (suggested name: _{1}).",
            args=("Total", "total"),
        )
        assert violation.message == (
            "The field Total must begin with an underscore (suggested name: _total)."
        )
        assert violation.line_number == 3
