"""Rule engine: walk element trees and assembly types, dispatching rules.

Rules are plain variants (see :mod:`stylewarden.analysis.rules`); this module
owns the traversal and decides which check runs where.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from stylewarden.analysis.inheritance import (
    BaseAssemblyNotFound,
    InheritanceResolver,
    ResolutionError,
)
from stylewarden.analysis.rules import (
    DirectiveBanRule,
    FieldNamingRule,
    LengthRule,
    ReturnTypeShapeRule,
    SetterVisibilityRule,
    check_directive,
    check_field_naming,
    check_length,
    check_public_setters,
    check_queryable_returns,
    element_kinds,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from stylewarden.analysis.rules import ElementRule, Rule, TypeRule, Violation
    from stylewarden.model.elements import SourceDocument, SyntaxElement
    from stylewarden.model.metadata import AssemblyUnit, CompiledType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Diagnostic:
    """A rule that could not be evaluated for one type."""

    rule_name: str
    subject: str  # full name of the type
    message: str


class ViolationSink:
    """Append-only, ordered collection of violations for one run."""

    def __init__(self) -> None:
        self._items: list[Violation] = []

    def extend(self, violations: list[Violation]) -> None:
        self._items.extend(violations)

    def __iter__(self) -> Iterator[Violation]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def to_list(self) -> list[Violation]:
        """Return a copy in traversal order."""
        return list(self._items)

    def by_rule(self, rule_name: str) -> list[Violation]:
        return [v for v in self._items if v.rule_name == rule_name]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def _evaluate_element(
    rule: ElementRule,
    element: SyntaxElement,
    ancestors: tuple[SyntaxElement, ...],
    path: str,
) -> list[Violation]:
    if isinstance(rule, FieldNamingRule):
        return check_field_naming(rule, element, ancestors, path)
    return check_length(rule, element, ancestors, path)


def _evaluate_type(
    rule: TypeRule, type_: CompiledType, resolver: InheritanceResolver
) -> list[Violation]:
    if isinstance(rule, SetterVisibilityRule):
        return check_public_setters(rule, type_, resolver)
    return check_queryable_returns(rule, type_, resolver)


class RuleEngine:
    """Evaluates an ordered set of rules against documents and assemblies.

    Rules are split by capability at construction; within each group the
    registration order is kept, so output order is deterministic.
    """

    def __init__(self, rules: list[Rule], resolver: InheritanceResolver | None = None) -> None:
        self.rules: tuple[Rule, ...] = tuple(rules)
        self.resolver = resolver or InheritanceResolver()
        self.element_rules: list[ElementRule] = []
        self.document_rules: list[DirectiveBanRule] = []
        self.type_rules: list[TypeRule] = []
        for rule in self.rules:
            if isinstance(rule, (FieldNamingRule, LengthRule)):
                self.element_rules.append(rule)
            elif isinstance(rule, DirectiveBanRule):
                self.document_rules.append(rule)
            elif isinstance(rule, (SetterVisibilityRule, ReturnTypeShapeRule)):
                self.type_rules.append(rule)

    def start_run(self) -> AnalysisRun:
        return AnalysisRun(self)

    def analyze(self, document: SourceDocument) -> list[Violation]:
        """Evaluate element and document rules over one document.

        Documents without a root element, or whose root is generated, are
        skipped.  The walk is depth-first pre-order; generated elements are
        visited (their children may be user code) but never checked.
        """
        root = document.root
        if root is None:
            logger.debug("Skipping %s: no root element", document.path)
            return []
        if root.generated:
            logger.debug("Skipping %s: generated document", document.path)
            return []

        violations: list[Violation] = []
        for rule in self.document_rules:
            violations.extend(check_directive(rule, root, document.source_text, document.path))

        visited = 0
        # Stack entries: (element, ancestors outermost first)
        stack: list[tuple[SyntaxElement, tuple[SyntaxElement, ...]]] = [(root, ())]
        while stack:
            element, ancestors = stack.pop()
            visited += 1
            if not element.generated:
                for rule in self.element_rules:
                    if element.kind in element_kinds(rule):
                        violations.extend(
                            _evaluate_element(rule, element, ancestors, document.path)
                        )
            child_ancestors = (*ancestors, element)
            for child in reversed(element.children):
                stack.append((child, child_ancestors))

        logger.debug(
            "Analyzed %s: %d elements, %d violations", document.path, visited, len(violations)
        )
        return violations

    def analyze_assembly(
        self, unit: AssemblyUnit, diagnostics: list[Diagnostic] | None = None
    ) -> list[Violation]:
        """Evaluate type rules over every type declared in *unit*.

        A resolution failure makes that rule not apply to that one type.  An
        ambiguous base assembly or a missing base type is logged as a warning
        and, when *diagnostics* is given, recorded there; a unit that
        references no base assembly at all is skipped quietly.
        """
        violations: list[Violation] = []
        for type_ in unit.types:
            for rule in self.type_rules:
                try:
                    violations.extend(_evaluate_type(rule, type_, self.resolver))
                except BaseAssemblyNotFound as exc:
                    # The unit cannot see the base library: nothing here derives from it.
                    logger.debug("Rule '%s' not applicable: %s", rule.name, exc)
                except ResolutionError as exc:
                    logger.warning(
                        "Rule '%s' skipped for %s: %s", rule.name, type_.full_name, exc
                    )
                    if diagnostics is not None:
                        diagnostics.append(
                            Diagnostic(
                                rule_name=rule.name,
                                subject=type_.full_name,
                                message=str(exc),
                            )
                        )
        return violations


class AnalysisRun:
    """One analysis run: violations and diagnostics accumulate across inputs."""

    def __init__(self, engine: RuleEngine) -> None:
        self.engine = engine
        self.violations = ViolationSink()
        self.diagnostics: list[Diagnostic] = []
        self.documents_scanned = 0
        self.types_scanned = 0

    def analyze_document(self, document: SourceDocument) -> list[Violation]:
        found = self.engine.analyze(document)
        self.violations.extend(found)
        self.documents_scanned += 1
        return found

    def analyze_assembly(self, unit: AssemblyUnit) -> list[Violation]:
        found = self.engine.analyze_assembly(unit, self.diagnostics)
        self.violations.extend(found)
        self.types_scanned += len(unit.types)
        return found
