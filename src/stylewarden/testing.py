"""Fixture harness for rule tests: add inputs, run the engine, assert on results.

Typical use::

    fixture = AnalysisFixture()
    fixture.add_source_file(tmp_path / "order.yml")
    fixture.run_analysis()
    fixture.assert_violated("TooLongMethod", lines=[12])
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from stylewarden.analysis.engine import RuleEngine
from stylewarden.analysis.rules import default_rules
from stylewarden.loader import load_document

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from stylewarden.analysis.engine import Diagnostic
    from stylewarden.analysis.rules import Rule, Violation
    from stylewarden.model.elements import SourceDocument
    from stylewarden.model.metadata import AssemblyUnit

logger = logging.getLogger(__name__)


class AnalysisFixture:
    """Collects documents and assemblies, analyses them, and checks the outcome.

    Failed assertions raise ``AssertionError`` so they read naturally under
    pytest.
    """

    def __init__(self, rules: list[Rule] | None = None) -> None:
        self.engine = RuleEngine(rules if rules is not None else default_rules())
        self._documents: list[SourceDocument] = []
        self._assemblies: list[AssemblyUnit] = []
        self.violations: list[Violation] = []
        self.diagnostics: list[Diagnostic] = []
        self.output: list[str] = []

    # -- inputs --------------------------------------------------------------

    def add_document(self, document: SourceDocument) -> None:
        self._documents.append(document)

    def add_source_file(self, path: Path) -> None:
        """Add a document description file.  Raises ``FileNotFoundError`` if absent."""
        if not path.is_file():
            raise FileNotFoundError(str(path))
        self._documents.append(load_document(path))

    def add_assembly(self, unit: AssemblyUnit) -> None:
        self._assemblies.append(unit)

    # -- run -----------------------------------------------------------------

    def run_analysis(self) -> list[Violation]:
        """Analyse every added input; results replace those of a previous run."""
        run = self.engine.start_run()
        for document in self._documents:
            run.analyze_document(document)
        for unit in self._assemblies:
            run.analyze_assembly(unit)

        self.violations = run.violations.to_list()
        self.diagnostics = list(run.diagnostics)
        self.output = [
            f"Rule '{v.rule_name}' violated at line {v.line_number}: {v.message}"
            for v in self.violations
        ]
        for line in self.output:
            logger.debug(line)
        return self.violations

    # -- assertions ----------------------------------------------------------

    def _matching(self, rule_name: str) -> list[Violation]:
        return [v for v in self.violations if v.rule_name == rule_name]

    def assert_violated(
        self,
        rule_name: str,
        *,
        count: int | None = None,
        lines: list[int] | None = None,
    ) -> None:
        """Assert *rule_name* fired, optionally an exact number of times or on given lines."""
        found = self._matching(rule_name)
        if not found:
            msg = f"Rule '{rule_name}' was not violated (but was expected to be)."
            raise AssertionError(msg)
        if count is not None and len(found) != count:
            msg = (
                f"Violated rule '{rule_name}' {len(found)} times, "
                f"but expected was {count} times."
            )
            raise AssertionError(msg)
        for line in lines or []:
            if not any(v.line_number == line for v in found):
                msg = f"Failed to violate rule '{rule_name}' on line #{line}."
                raise AssertionError(msg)

    def assert_not_violated(self, rule_name: str) -> None:
        if self._matching(rule_name):
            msg = f"Rule '{rule_name}' was unexpectedly violated."
            raise AssertionError(msg)

    def assert_any(self, match: Callable[[Violation], bool]) -> None:
        """Assert some violation satisfies *match*."""
        if not any(match(v) for v in self.violations):
            msg = "Failed to violate a rule with the specified criteria."
            raise AssertionError(msg)
