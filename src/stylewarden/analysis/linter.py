"""Linter orchestrator: load rules and inputs, run the engine, format results."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stylewarden.analysis.engine import Diagnostic, RuleEngine
from stylewarden.analysis.rules import Violation, default_rules, load_rules, validate_rules
from stylewarden.loader import load_document, load_metadata

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class LintError(Exception):
    """Raised when lint encounters a configuration error or a missing input."""


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class LintResult:
    """Result of a lint run."""

    violations: list[Violation] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    rules_evaluated: int = 0
    documents_scanned: int = 0
    types_scanned: int = 0
    elapsed_ms: float = 0.0


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def lint(
    documents: list[Path],
    *,
    metadata_path: Path | None = None,
    rules_path: Path | None = None,
    assemblies: list[str] | None = None,
) -> LintResult:
    """Run the lint process: load rules and inputs, evaluate, and return results.

    Parameters
    ----------
    documents:
        Document description files, analysed in the given order.
    metadata_path:
        Optional metadata graph file.  Type rules only run when it is given.
    rules_path:
        Optional ``stylewarden.yml``.  When *None* the default rule set is used.
    assemblies:
        Names of the assemblies whose types are checked.  When *None* every
        assembly in the metadata graph is checked.

    Returns
    -------
    LintResult
        Summary with violations (traversal order), diagnostics, and counts.

    Raises
    ------
    LintError
        When an input file is missing or a configuration file is invalid.
    """
    start = time.monotonic()

    # Step a: Rules.
    if rules_path is None:
        rules = default_rules()
    else:
        try:
            rules = load_rules(rules_path)
        except FileNotFoundError as exc:
            msg = f"Rules file not found: {exc}"
            raise LintError(msg) from exc
        except ValueError as exc:
            msg = f"Invalid rules configuration: {exc}"
            raise LintError(msg) from exc

    # Step b: Metadata graph (optional).
    graph = None
    warnings: list[str] = []
    if metadata_path is not None:
        try:
            graph = load_metadata(metadata_path)
        except FileNotFoundError as exc:
            msg = f"Metadata file not found: {exc}"
            raise LintError(msg) from exc
        except ValueError as exc:
            msg = f"Invalid metadata: {exc}"
            raise LintError(msg) from exc
        warnings = validate_rules(rules, graph)
        for warning in warnings:
            logger.warning(warning)

    engine = RuleEngine(rules)
    run = engine.start_run()

    # Step c: Documents, one at a time.
    for doc_path in documents:
        try:
            document = load_document(doc_path)
        except FileNotFoundError as exc:
            msg = f"Source file not found: {exc}"
            raise LintError(msg) from exc
        except ValueError as exc:
            msg = f"Invalid document {doc_path}: {exc}"
            raise LintError(msg) from exc
        run.analyze_document(document)

    # Step d: Assemblies.
    if graph is not None:
        selected = list(graph)
        if assemblies is not None:
            unknown = sorted(set(assemblies) - {unit.name for unit in selected})
            if unknown:
                msg = f"Assembly not found in metadata: {', '.join(unknown)}"
                raise LintError(msg)
            selected = [unit for unit in selected if unit.name in assemblies]
        for unit in selected:
            run.analyze_assembly(unit)

    elapsed = (time.monotonic() - start) * 1000

    return LintResult(
        violations=run.violations.to_list(),
        diagnostics=list(run.diagnostics),
        warnings=warnings,
        rules_evaluated=len(rules),
        documents_scanned=run.documents_scanned,
        types_scanned=run.types_scanned,
        elapsed_ms=elapsed,
    )


# ---------------------------------------------------------------------------
# Formatters
# ---------------------------------------------------------------------------


def _location_str(v: Violation) -> str:
    loc = v.location.path
    if v.location.line is not None:
        loc += f":{v.location.line}"
    return loc


def format_rich(result: LintResult) -> str:
    """Format a LintResult as human-readable text.

    Example output with violations::

        Rules: 6 loaded
        Inputs: 2 documents, 14 types

        x TooLongMethod (error)
          src/Order.cs:12 Order.Process
          The method Process is 61 lines long, which exceeds the maximum of 50 lines.

        1 violations found (6 rules evaluated, 0.0s)
    """
    lines: list[str] = []

    lines.append(f"Rules: {result.rules_evaluated} loaded")
    lines.append(
        f"Inputs: {result.documents_scanned} documents, {result.types_scanned} types"
    )
    lines.append("")

    elapsed_str = f"{result.elapsed_ms / 1000:.1f}s"

    for warning in result.warnings:
        lines.append(f"! {warning}")
    for diag in result.diagnostics:
        lines.append(f"! {diag.rule_name} skipped for {diag.subject}: {diag.message}")
    if result.warnings or result.diagnostics:
        lines.append("")

    if result.violations:
        for v in result.violations:
            lines.append(f"\u2717 {v.rule_name} ({v.severity})")
            lines.append(f"  {_location_str(v)} {v.location.subject}")
            lines.append(f"  {v.message}")
            lines.append("")

        count = len(result.violations)
        lines.append(
            f"{count} violations found ({result.rules_evaluated} rules evaluated, {elapsed_str})"
        )
    else:
        lines.append(
            f"\u2713 No violations found ({result.rules_evaluated} rules evaluated, {elapsed_str})"
        )

    return "\n".join(lines)


def format_json(result: LintResult) -> str:
    """Format a LintResult as structured JSON.

    Returns a JSON string with ``violations``, ``diagnostics`` and ``summary``.
    """
    violations_list: list[dict[str, object]] = [
        {
            "rule_name": v.rule_name,
            "rule_type": v.rule_type,
            "severity": v.severity,
            "path": v.location.path,
            "line_number": v.location.line,
            "subject": v.location.subject,
            "message": v.message,
        }
        for v in result.violations
    ]
    diagnostics_list: list[dict[str, object]] = [
        {"rule_name": d.rule_name, "subject": d.subject, "message": d.message}
        for d in result.diagnostics
    ]

    output: dict[str, object] = {
        "violations": violations_list,
        "diagnostics": diagnostics_list,
        "summary": {
            "rules_evaluated": result.rules_evaluated,
            "violations_count": len(result.violations),
            "documents_scanned": result.documents_scanned,
            "types_scanned": result.types_scanned,
            "elapsed_ms": result.elapsed_ms,
        },
    }

    return json.dumps(output, indent=2)


def format_porcelain(result: LintResult) -> str:
    """Format a LintResult as machine-readable one-line-per-violation output.

    Format: ``rule_name:rule_type:severity:path:line:subject``

    A missing line number is an empty string.  Returns empty string when
    there are no violations.
    """
    if not result.violations:
        return ""

    lines: list[str] = []
    for v in result.violations:
        line_number = str(v.location.line) if v.location.line is not None else ""
        lines.append(
            f"{v.rule_name}:{v.rule_type}:{v.severity}:"
            f"{v.location.path}:{line_number}:{v.location.subject}"
        )

    return "\n".join(lines)
