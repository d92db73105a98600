"""Analysis domain: inheritance resolver, rules, engine, linter."""

from stylewarden.analysis.engine import AnalysisRun, Diagnostic, RuleEngine, ViolationSink
from stylewarden.analysis.inheritance import (
    AmbiguousBaseAssembly,
    BaseAssemblyNotFound,
    BaseTypeNotFound,
    InheritanceResolver,
    ResolutionError,
    inherits_from,
)
from stylewarden.analysis.linter import (
    LintError,
    LintResult,
    format_json,
    format_porcelain,
    format_rich,
    lint,
)
from stylewarden.analysis.rules import (
    BaseTypeRef,
    DirectiveBanRule,
    FieldNamingRule,
    LengthRule,
    Location,
    ReturnTypeShapeRule,
    Rule,
    SetterVisibilityRule,
    Violation,
    default_rules,
    load_rules,
    parse_rules,
    validate_rules,
)

__all__ = [
    "AmbiguousBaseAssembly",
    "AnalysisRun",
    "BaseAssemblyNotFound",
    "BaseTypeNotFound",
    "BaseTypeRef",
    "Diagnostic",
    "DirectiveBanRule",
    "FieldNamingRule",
    "InheritanceResolver",
    "LengthRule",
    "LintError",
    "LintResult",
    "Location",
    "ResolutionError",
    "ReturnTypeShapeRule",
    "Rule",
    "RuleEngine",
    "SetterVisibilityRule",
    "Violation",
    "ViolationSink",
    "default_rules",
    "format_json",
    "format_porcelain",
    "format_rich",
    "inherits_from",
    "lint",
    "load_rules",
    "parse_rules",
    "validate_rules",
]
