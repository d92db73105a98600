"""Convention rules: variant definitions, stylewarden.yml parsing, and per-rule checks."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import yaml

from stylewarden.analysis.inheritance import ResolutionError
from stylewarden.model.elements import AccessLevel, ElementKind

if TYPE_CHECKING:
    from pathlib import Path

    from stylewarden.analysis.inheritance import InheritanceResolver
    from stylewarden.model.elements import SyntaxElement
    from stylewarden.model.metadata import CompiledType, MetadataGraph

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

VALID_RULE_SEVERITIES: frozenset[str] = frozenset({"error", "warn"})
SUPPORTED_SCHEMA_VERSIONS: frozenset[int] = frozenset({1})
LENGTH_RULE_KINDS: frozenset[str] = frozenset(
    {ElementKind.METHOD.value, ElementKind.CLASS.value, ElementKind.CONSTRUCTOR.value}
)

DEFAULT_MAX_METHOD_LENGTH = 50
DEFAULT_MAX_CLASS_LENGTH = 500
DEFAULT_DEBUG_DIRECTIVE = "#if debug"
DEFAULT_QUERYABLE_MARKER = "IQueryable"

FIELD_NAMING_TEMPLATE = "The field {0} must begin with an underscore (suggested name: _{1})."
FIELD_PREFIX_TEMPLATE = "The field {0} must begin with '{2}' (suggested name: {2}{1})."
LENGTH_TEMPLATE = "The {kind} {{0}} is {{1}} lines long, which exceeds the maximum of {{2}} lines."
DIRECTIVE_TEMPLATE = "The document {0} contains a '{1}' directive, which is not allowed."
PUBLIC_SETTER_TEMPLATE = (
    "The property {1} of entity {0} has a public setter, which is not allowed for entities."
)
QUERYABLE_RETURN_TEMPLATE = (
    "The public method {0}.{1} of repository {0} returns IQueryable, "
    "which is not allowed for repositories."
)

# Access tiers exempt from the underscore convention.
_VISIBLE_ACCESS: frozenset[AccessLevel] = frozenset({AccessLevel.PUBLIC, AccessLevel.INTERNAL})

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BaseTypeRef:
    """Identifies a base type: assembly name prefix plus exact full type name."""

    assembly_prefix: str
    full_name: str


ENTITY_BASE = BaseTypeRef(
    "Uncas.CodeAnalysis.TestLibrary", "Uncas.CodeAnalysis.TestLibrary.Entity"
)
REPOSITORY_BASE = BaseTypeRef(
    "Uncas.CodeAnalysis.TestLibrary", "Uncas.CodeAnalysis.TestLibrary.Repository"
)
QUERYABLE_BASE = BaseTypeRef("System.Core", "System.Linq.IQueryable")


@dataclass(frozen=True)
class FieldNamingRule:
    """Private and protected fields must start with an underscore."""

    name: str = "FieldNamesMustBeginWithUnderscore"
    description: str = "Non-public fields must begin with an underscore"
    severity: str = "error"
    prefix: str = "_"


@dataclass(frozen=True)
class LengthRule:
    """Forbid elements of one kind whose source span exceeds a threshold."""

    name: str
    kind: ElementKind
    threshold: int
    description: str = ""
    severity: str = "error"


@dataclass(frozen=True)
class DirectiveBanRule:
    """Forbid a conditional-compilation directive anywhere in the raw text."""

    name: str = "AvoidDebugDirective"
    description: str = "Debug-only conditional compilation is not allowed"
    severity: str = "error"
    directive: str = DEFAULT_DEBUG_DIRECTIVE


@dataclass(frozen=True)
class SetterVisibilityRule:
    """Types deriving from ``base`` must not expose public property setters."""

    name: str = "EntitiesShouldNotHavePublicSetters"
    description: str = "Entities must not have public setters"
    severity: str = "warn"
    base: BaseTypeRef = ENTITY_BASE


@dataclass(frozen=True)
class ReturnTypeShapeRule:
    """Public methods of types deriving from ``base`` must not return queryables.

    A return type is queryable when its name contains ``marker`` or when it
    derives from ``queryable`` (skipped when ``queryable`` is ``None``).
    """

    name: str = "RepositoriesShouldNotReturnIQueryable"
    description: str = "Repositories must not return IQueryable"
    severity: str = "warn"
    base: BaseTypeRef = REPOSITORY_BASE
    queryable: BaseTypeRef | None = QUERYABLE_BASE
    marker: str = DEFAULT_QUERYABLE_MARKER


Rule = (
    FieldNamingRule
    | LengthRule
    | DirectiveBanRule
    | SetterVisibilityRule
    | ReturnTypeShapeRule
)
ElementRule = FieldNamingRule | LengthRule
TypeRule = SetterVisibilityRule | ReturnTypeShapeRule


@dataclass(frozen=True)
class Location:
    """Where a violation was found: document or assembly, line, and subject."""

    path: str
    line: int | None
    subject: str


@dataclass(frozen=True)
class Violation:
    """A single rule violation.  The message is rendered on access."""

    rule_name: str
    rule_type: str  # "field_naming" | "max_length" | ...
    severity: str  # "error" | "warn"
    location: Location
    template: str
    args: tuple[object, ...] = ()

    @property
    def message(self) -> str:
        return self.template.format(*self.args)

    @property
    def line_number(self) -> int | None:
        return self.location.line


def rule_type(rule: Rule) -> str:
    """Return the stylewarden.yml block name of a rule variant."""
    if isinstance(rule, FieldNamingRule):
        return "field_naming"
    if isinstance(rule, LengthRule):
        return "max_length"
    if isinstance(rule, DirectiveBanRule):
        return "forbid_directive"
    if isinstance(rule, SetterVisibilityRule):
        return "forbid_public_setters"
    return "forbid_queryable_return"


def default_rules() -> list[Rule]:
    """Return the standard rule set with default thresholds and base types."""
    return [
        FieldNamingRule(),
        LengthRule(
            name="TooLongMethod",
            kind=ElementKind.METHOD,
            threshold=DEFAULT_MAX_METHOD_LENGTH,
            description="Methods must not be too long",
        ),
        LengthRule(
            name="TooLongClass",
            kind=ElementKind.CLASS,
            threshold=DEFAULT_MAX_CLASS_LENGTH,
            description="Classes must not be too long",
        ),
        DirectiveBanRule(),
        SetterVisibilityRule(),
        ReturnTypeShapeRule(),
    ]


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------


def _require_str(data: dict[str, object], key: str, context: str) -> str:
    value = data.get(key)
    if value is None or not isinstance(value, str) or not value.strip():
        msg = f"{context}: '{key}' must be a non-empty string"
        raise ValueError(msg)
    return value


def _parse_base_ref(data: object, context: str) -> BaseTypeRef:
    """Parse ``{assembly: ..., type: ...}`` into a :class:`BaseTypeRef`."""
    if not isinstance(data, dict):
        msg = f"{context} must be a mapping with 'assembly' and 'type'"
        raise ValueError(msg)
    return BaseTypeRef(
        assembly_prefix=_require_str(data, "assembly", context),
        full_name=_require_str(data, "type", context),
    )


def _parse_field_naming_rule(
    name: str, description: str, data: dict[str, object], *, severity: str
) -> FieldNamingRule:
    """Parse the 'field_naming' block of a rule."""
    prefix = data.get("prefix", "_")
    if not isinstance(prefix, str) or not prefix:
        msg = f"Rule '{name}': field_naming.prefix must be a non-empty string"
        raise ValueError(msg)
    return FieldNamingRule(
        name=name,
        description=description or FieldNamingRule.description,
        severity=severity,
        prefix=prefix,
    )


def _parse_length_rule(
    name: str, description: str, data: dict[str, object], *, severity: str
) -> LengthRule:
    """Parse the 'max_length' block of a rule."""
    kind_raw = data.get("kind")
    if kind_raw is None:
        msg = f"Rule '{name}': max_length.kind is required"
        raise ValueError(msg)
    kind_str = str(kind_raw)
    if kind_str not in LENGTH_RULE_KINDS:
        msg = (
            f"Rule '{name}': invalid kind '{kind_str}', "
            f"must be one of {sorted(LENGTH_RULE_KINDS)}"
        )
        raise ValueError(msg)

    threshold_raw = data.get("threshold")
    if isinstance(threshold_raw, bool) or not isinstance(threshold_raw, int):
        msg = f"Rule '{name}': max_length.threshold must be an integer"
        raise ValueError(msg)
    if threshold_raw < 1:
        msg = f"Rule '{name}': max_length.threshold must be positive"
        raise ValueError(msg)

    return LengthRule(
        name=name,
        kind=ElementKind(kind_str),
        threshold=threshold_raw,
        description=description,
        severity=severity,
    )


def _parse_directive_rule(
    name: str, description: str, data: dict[str, object], *, severity: str
) -> DirectiveBanRule:
    """Parse the 'forbid_directive' block of a rule."""
    directive = data.get("directive", DEFAULT_DEBUG_DIRECTIVE)
    if not isinstance(directive, str) or not directive.strip():
        msg = f"Rule '{name}': forbid_directive.directive must be a non-empty string"
        raise ValueError(msg)
    return DirectiveBanRule(
        name=name,
        description=description or DirectiveBanRule.description,
        severity=severity,
        directive=directive,
    )


def _parse_setter_rule(
    name: str, description: str, data: dict[str, object], *, severity: str
) -> SetterVisibilityRule:
    """Parse the 'forbid_public_setters' block of a rule."""
    base = _parse_base_ref(data.get("base"), f"Rule '{name}' forbid_public_setters.base")
    return SetterVisibilityRule(
        name=name,
        description=description or SetterVisibilityRule.description,
        severity=severity,
        base=base,
    )


def _parse_queryable_rule(
    name: str, description: str, data: dict[str, object], *, severity: str
) -> ReturnTypeShapeRule:
    """Parse the 'forbid_queryable_return' block of a rule.

    ``queryable`` defaults to ``System.Linq.IQueryable`` from ``System.Core``;
    ``queryable: null`` disables the inheritance check and keeps only the
    name match.
    """
    context = f"Rule '{name}' forbid_queryable_return"
    base = _parse_base_ref(data.get("base"), f"{context}.base")

    queryable: BaseTypeRef | None = QUERYABLE_BASE
    if "queryable" in data:
        raw = data["queryable"]
        queryable = None if raw is None else _parse_base_ref(raw, f"{context}.queryable")

    marker = data.get("name_contains", DEFAULT_QUERYABLE_MARKER)
    if not isinstance(marker, str) or not marker:
        msg = f"{context}.name_contains must be a non-empty string"
        raise ValueError(msg)

    return ReturnTypeShapeRule(
        name=name,
        description=description or ReturnTypeShapeRule.description,
        severity=severity,
        base=base,
        queryable=queryable,
        marker=marker,
    )


_RULE_PARSERS = {
    "field_naming": _parse_field_naming_rule,
    "max_length": _parse_length_rule,
    "forbid_directive": _parse_directive_rule,
    "forbid_public_setters": _parse_setter_rule,
    "forbid_queryable_return": _parse_queryable_rule,
}


def _check_version(data: dict[str, object]) -> None:
    if "version" not in data or data["version"] is None:
        msg = "stylewarden.yml: missing required 'version' field"
        raise ValueError(msg)
    if data["version"] not in SUPPORTED_SCHEMA_VERSIONS:
        msg = (
            f"stylewarden.yml: unsupported version {data['version']} "
            f"(this release reads {', '.join(map(str, sorted(SUPPORTED_SCHEMA_VERSIONS)))})"
        )
        raise ValueError(msg)


def _rule_block(name: str, raw: dict[str, object]) -> tuple[str, dict[str, object]]:
    """Pick the single rule-type block of a rule entry; a null block means defaults."""
    present = [key for key in _RULE_PARSERS if key in raw]
    if len(present) != 1:
        found = ", ".join(present) or "none"
        msg = (
            f"Rule '{name}' must have exactly one of {', '.join(_RULE_PARSERS)} "
            f"(found: {found})"
        )
        raise ValueError(msg)
    (block,) = present
    body = raw[block] if raw[block] is not None else {}
    if not isinstance(body, dict):
        msg = f"Rule '{name}': '{block}' must be a mapping"
        raise ValueError(msg)
    return block, body


def parse_rules(data: object) -> list[Rule]:
    """Validate an already-loaded stylewarden.yml mapping and build rules.

    Raises ``ValueError`` on schema errors.
    """
    if not isinstance(data, dict):
        msg = "stylewarden.yml must be a YAML mapping"
        raise ValueError(msg)
    _check_version(data)

    entries = data.get("rules") or []
    if not isinstance(entries, list):
        msg = "stylewarden.yml: 'rules' must be a list"
        raise ValueError(msg)

    rules: list[Rule] = []
    for position, raw in enumerate(entries, start=1):
        name = raw.get("name") if isinstance(raw, dict) else None
        if not isinstance(name, str) or not name.strip():
            msg = f"stylewarden.yml: rule #{position} needs a mapping with a non-empty 'name'"
            raise ValueError(msg)
        if any(existing.name == name for existing in rules):
            msg = f"stylewarden.yml: Duplicate rule name '{name}'"
            raise ValueError(msg)

        severity = str(raw.get("severity") or "error")
        if severity not in VALID_RULE_SEVERITIES:
            msg = f"Rule '{name}': invalid severity '{severity}' (use 'error' or 'warn')"
            raise ValueError(msg)

        block, body = _rule_block(name, raw)
        parser = _RULE_PARSERS[block]
        rules.append(parser(name, str(raw.get("description") or ""), body, severity=severity))

    return rules


def load_rules(rules_path: Path) -> list[Rule]:
    """Parse stylewarden.yml and return validated Rule objects.

    Raises ``FileNotFoundError`` when the file is missing and ``ValueError``
    on schema errors.
    """
    if not rules_path.is_file():
        raise FileNotFoundError(str(rules_path))
    with rules_path.open("r", encoding="utf-8") as fh:
        try:
            data = yaml.safe_load(fh)
        except yaml.YAMLError as exc:
            msg = f"stylewarden.yml: invalid YAML: {exc}"
            raise ValueError(msg) from exc
    return parse_rules(data)


def validate_rules(rules: list[Rule], graph: MetadataGraph) -> list[str]:
    """Check base-type references against the metadata graph, returning warnings.

    A base assembly prefix that no loaded assembly matches usually means a
    misconfigured rule: every type check would resolve to "does not apply".
    An assembly that reaches the base library only through another assembly
    is also reported, since base lookup sees direct references only.
    """
    warnings: list[str] = []
    refs: list[tuple[str, BaseTypeRef]] = []
    for rule in rules:
        if isinstance(rule, SetterVisibilityRule):
            refs.append((rule.name, rule.base))
        elif isinstance(rule, ReturnTypeShapeRule):
            refs.append((rule.name, rule.base))

    names = [unit.name.lower() for unit in graph]
    for rule_name, ref in refs:
        prefix = ref.assembly_prefix.lower()
        if not any(name.startswith(prefix) for name in names):
            warnings.append(
                f"Rule '{rule_name}' references assembly prefix "
                f"'{ref.assembly_prefix}' which matches no loaded assembly"
            )
            continue
        for unit in graph:
            direct = [unit, *unit.references]
            if any(u.name.lower().startswith(prefix) for u in direct):
                continue
            indirect = graph.transitive_references(unit)
            if any(u.name.lower().startswith(prefix) for u in indirect):
                warnings.append(
                    f"Assembly '{unit.name}' reaches '{ref.assembly_prefix}' only through "
                    f"indirect references; rule '{rule_name}' will not apply to its types"
                )
    return warnings


# ---------------------------------------------------------------------------
# Element rule checks
# ---------------------------------------------------------------------------


def element_kinds(rule: ElementRule) -> frozenset[ElementKind]:
    """Element kinds an element rule is dispatched for."""
    if isinstance(rule, FieldNamingRule):
        return frozenset({ElementKind.FIELD})
    return frozenset({rule.kind})


_TYPE_KINDS: frozenset[ElementKind] = frozenset(
    {ElementKind.CLASS, ElementKind.STRUCT, ElementKind.INTERFACE}
)


def qualified_name(element: SyntaxElement, ancestors: tuple[SyntaxElement, ...]) -> str:
    """Name of *element* prefixed by its enclosing type names (``Outer.Inner.Method``)."""
    parts = [a.name for a in ancestors if a.kind in _TYPE_KINDS and a.name]
    parts.append(element.name)
    return ".".join(parts)


def suggest_field_name(name: str) -> str:
    """Lower-case the first character, leaving the rest unchanged."""
    return name[:1].lower() + name[1:]


def check_field_naming(
    rule: FieldNamingRule,
    element: SyntaxElement,
    ancestors: tuple[SyntaxElement, ...],
    path: str,
) -> list[Violation]:
    """Flag non-public, non-const fields whose name lacks the prefix."""
    if (
        element.generated
        or element.kind is not ElementKind.FIELD
        or element.access in _VISIBLE_ACCESS
        or element.const
        or not element.name
        or element.name.startswith(rule.prefix)
    ):
        return []
    return [
        Violation(
            rule_name=rule.name,
            rule_type="field_naming",
            severity=rule.severity,
            location=Location(
                path=path, line=element.line, subject=qualified_name(element, ancestors)
            ),
            template=FIELD_NAMING_TEMPLATE if rule.prefix == "_" else FIELD_PREFIX_TEMPLATE,
            args=(element.name, suggest_field_name(element.name), rule.prefix),
        )
    ]


def check_length(
    rule: LengthRule,
    element: SyntaxElement,
    ancestors: tuple[SyntaxElement, ...],
    path: str,
) -> list[Violation]:
    """Flag an element whose line span is strictly greater than the threshold."""
    if element.kind is not rule.kind:
        return []
    span = element.span()
    if span <= rule.threshold:
        return []
    return [
        Violation(
            rule_name=rule.name,
            rule_type="max_length",
            severity=rule.severity,
            location=Location(
                path=path, line=element.line, subject=qualified_name(element, ancestors)
            ),
            template=LENGTH_TEMPLATE.format(kind=rule.kind.value),
            args=(element.name, span, rule.threshold),
        )
    ]


def check_directive(
    rule: DirectiveBanRule, root: SyntaxElement, source_text: str, path: str
) -> list[Violation]:
    """Flag a document whose raw text contains the banned directive (once)."""
    if rule.directive not in source_text:
        return []
    return [
        Violation(
            rule_name=rule.name,
            rule_type="forbid_directive",
            severity=rule.severity,
            location=Location(path=path, line=root.line, subject=root.name),
            template=DIRECTIVE_TEMPLATE,
            args=(root.name or path, rule.directive),
        )
    ]


# ---------------------------------------------------------------------------
# Type rule checks
# ---------------------------------------------------------------------------


def check_public_setters(
    rule: SetterVisibilityRule, type_: CompiledType, resolver: InheritanceResolver
) -> list[Violation]:
    """One violation per property with a public setter on a derived type.

    Resolution errors propagate to the caller.
    """
    if not resolver.inherits_from(type_, rule.base.assembly_prefix, rule.base.full_name):
        return []
    return [
        Violation(
            rule_name=rule.name,
            rule_type="forbid_public_setters",
            severity=rule.severity,
            location=Location(
                path=type_.assembly.name,
                line=None,
                subject=f"{type_.full_name}.{prop.name}",
            ),
            template=PUBLIC_SETTER_TEMPLATE,
            args=(type_.name, prop.name),
        )
        for prop in type_.properties
        if prop.setter_access is AccessLevel.PUBLIC
    ]


def is_queryable(
    rule: ReturnTypeShapeRule, return_type: CompiledType, resolver: InheritanceResolver
) -> bool:
    """Name match first, then inheritance from the configured queryable base.

    A queryable base that cannot be resolved from the return type's assembly
    means the return type cannot derive from it.
    """
    if rule.marker in return_type.name:
        return True
    if rule.queryable is None:
        return False
    try:
        return resolver.inherits_from(
            return_type, rule.queryable.assembly_prefix, rule.queryable.full_name
        )
    except ResolutionError:
        return False


def check_queryable_returns(
    rule: ReturnTypeShapeRule, type_: CompiledType, resolver: InheritanceResolver
) -> list[Violation]:
    """One violation per public method returning a queryable on a derived type.

    Resolution errors for the repository base propagate to the caller.
    """
    if not resolver.inherits_from(type_, rule.base.assembly_prefix, rule.base.full_name):
        return []
    violations: list[Violation] = []
    for method in type_.methods:
        if method.access is not AccessLevel.PUBLIC or method.return_type is None:
            continue
        if not is_queryable(rule, method.return_type, resolver):
            continue
        violations.append(
            Violation(
                rule_name=rule.name,
                rule_type="forbid_queryable_return",
                severity=rule.severity,
                location=Location(
                    path=type_.assembly.name,
                    line=None,
                    subject=f"{type_.full_name}.{method.name}",
                ),
                template=QUERYABLE_RETURN_TEMPLATE,
                args=(type_.name, method.name),
            )
        )
    return violations
