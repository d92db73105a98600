"""YAML readers for host inputs: parsed documents and compiled metadata graphs.

A real host hands the engine its own parser output and metadata reader output.
These readers build the same model from YAML descriptions so the CLI and the
test fixtures can run without a host.

Document file::

    path: src/Order.cs
    source_file: Order.cs        # or an inline ``source:`` string
    root:
      kind: root
      name: Order.cs
      line: 1
      children:
        - kind: method
          name: Process
          line: 7
          access: public
          statements: [8, 9, {line: 10, statements: [11, 12]}]

Metadata file::

    assemblies:
      - name: Acme.Domain
        references: [System.Core]
        types:
          - name: Acme.Domain.Order
            base: Acme.Domain.Entity
            properties: [{name: Total, access: public, setter: public}]
            methods: [{name: Query, access: public, returns: "System.Core::System.Linq.IQueryable"}]
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import yaml

from stylewarden.model.elements import (
    AccessLevel,
    ElementKind,
    SourceDocument,
    Statement,
    SyntaxElement,
)
from stylewarden.model.metadata import (
    AssemblyUnit,
    CompiledType,
    FieldMember,
    Member,
    MetadataGraph,
    MethodMember,
    PropertyMember,
)

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)

_ASSEMBLY_SEPARATOR = "::"


def _read_yaml(path: Path) -> Any:
    if not path.is_file():
        raise FileNotFoundError(str(path))
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        msg = f"{path}: invalid YAML: {exc}"
        raise ValueError(msg) from exc


def _parse_access(raw: object, context: str, default: AccessLevel) -> AccessLevel:
    if raw is None:
        return default
    try:
        return AccessLevel(str(raw).lower().replace(" ", "_"))
    except ValueError:
        valid = sorted(a.value for a in AccessLevel)
        msg = f"{context}: invalid access '{raw}', must be one of {valid}"
        raise ValueError(msg) from None


def _parse_line(raw: object, context: str) -> int:
    if isinstance(raw, bool) or not isinstance(raw, int) or raw < 1:
        msg = f"{context}: line must be a positive integer"
        raise ValueError(msg)
    return raw


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


def _parse_statement(data: object, context: str) -> Statement:
    if isinstance(data, dict):
        nested = data.get("statements") or []
        if not isinstance(nested, list):
            msg = f"{context}: statements must be a list"
            raise ValueError(msg)
        return Statement(
            line=_parse_line(data.get("line"), context),
            statements=tuple(_parse_statement(s, context) for s in nested),
        )
    return Statement(line=_parse_line(data, context))


def parse_element(data: object, context: str = "root") -> SyntaxElement:
    """Build a :class:`SyntaxElement` tree from nested mappings."""
    if not isinstance(data, dict):
        msg = f"{context}: element must be a mapping"
        raise ValueError(msg)

    kind_raw = data.get("kind")
    try:
        kind = ElementKind(str(kind_raw).lower())
    except ValueError:
        valid = sorted(k.value for k in ElementKind)
        msg = f"{context}: invalid kind '{kind_raw}', must be one of {valid}"
        raise ValueError(msg) from None

    name = str(data.get("name", ""))
    where = f"{context}/{name or kind.value}"

    statements_raw = data.get("statements") or []
    children_raw = data.get("children") or []
    if not isinstance(statements_raw, list) or not isinstance(children_raw, list):
        msg = f"{where}: statements and children must be lists"
        raise ValueError(msg)

    return SyntaxElement(
        kind=kind,
        name=name,
        line=_parse_line(data.get("line", 1), where),
        access=_parse_access(data.get("access"), where, AccessLevel.PRIVATE),
        generated=bool(data.get("generated", False)),
        const=bool(data.get("const", False)),
        statements=tuple(_parse_statement(s, where) for s in statements_raw),
        children=tuple(parse_element(c, where) for c in children_raw),
    )


def load_document(path: Path) -> SourceDocument:
    """Read a document description.  Raises ``FileNotFoundError`` if absent."""
    data = _read_yaml(path)
    if not isinstance(data, dict):
        msg = f"{path}: document must be a YAML mapping"
        raise ValueError(msg)

    doc_path = str(data.get("path") or path)

    source_text = data.get("source")
    source_file = data.get("source_file")
    if source_text is None and source_file is not None:
        source_path = path.parent / str(source_file)
        if not source_path.is_file():
            raise FileNotFoundError(str(source_path))
        source_text = source_path.read_text(encoding="utf-8")

    root_raw = data.get("root")
    root = parse_element(root_raw, doc_path) if root_raw is not None else None
    return SourceDocument(path=doc_path, root=root, source_text=str(source_text or ""))


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


def _lookup_type(
    ref: str, unit: AssemblyUnit, graph: MetadataGraph, context: str
) -> CompiledType:
    """Resolve ``Assembly::Full.Name`` or a bare full name visible from *unit*.

    Bare names are looked up in *unit* first, then its references in order.
    """
    if _ASSEMBLY_SEPARATOR in ref:
        assembly_name, _, full_name = ref.partition(_ASSEMBLY_SEPARATOR)
        owner = graph.get(assembly_name)
        if owner is None:
            msg = f"{context}: unknown assembly '{assembly_name}'"
            raise ValueError(msg)
        found = owner.get_type(full_name)
    else:
        found = None
        for candidate in (unit, *unit.references):
            found = candidate.get_type(ref)
            if found is not None:
                break
    if found is None:
        msg = f"{context}: unknown type '{ref}'"
        raise ValueError(msg)
    return found


def _member(raw: object, context: str) -> dict[str, Any]:
    if not isinstance(raw, dict) or not raw.get("name"):
        msg = f"{context}: every member must be a mapping with a 'name'"
        raise ValueError(msg)
    return raw


def _parse_members(
    type_data: dict[str, Any], unit: AssemblyUnit, graph: MetadataGraph, context: str
) -> list[Member]:
    members: list[Member] = []
    for item in type_data.get("fields") or []:
        raw = _member(item, context)
        members.append(
            FieldMember(
                name=str(raw["name"]),
                access=_parse_access(raw.get("access"), context, AccessLevel.PRIVATE),
            )
        )
    for item in type_data.get("properties") or []:
        raw = _member(item, context)
        setter = raw.get("setter")
        members.append(
            PropertyMember(
                name=str(raw["name"]),
                access=_parse_access(raw.get("access"), context, AccessLevel.PUBLIC),
                setter_access=(
                    None if setter is None else _parse_access(setter, context, AccessLevel.PUBLIC)
                ),
            )
        )
    for item in type_data.get("methods") or []:
        raw = _member(item, context)
        returns = raw.get("returns")
        return_type = None
        if returns is not None and str(returns) != "void":
            return_type = _lookup_type(str(returns), unit, graph, f"{context}.{raw['name']}")
        members.append(
            MethodMember(
                name=str(raw["name"]),
                access=_parse_access(raw.get("access"), context, AccessLevel.PUBLIC),
                return_type=return_type,
            )
        )
    return members


def build_metadata(data: object) -> MetadataGraph:
    """Build a :class:`MetadataGraph` from an ``assemblies:`` mapping.

    Two passes: declare every assembly and type, then wire references, base
    types and members.  Reference cycles between assemblies are accepted.
    """
    if not isinstance(data, dict) or not isinstance(data.get("assemblies"), list):
        msg = "metadata must be a mapping with an 'assemblies' list"
        raise ValueError(msg)

    graph = MetadataGraph()
    pending: list[tuple[AssemblyUnit, dict[str, Any]]] = []

    # --- Pass 1: assemblies and type declarations ---
    for idx, raw in enumerate(data["assemblies"]):
        if not isinstance(raw, dict) or not raw.get("name"):
            msg = f"assembly at index {idx} must be a mapping with a 'name'"
            raise ValueError(msg)
        unit = AssemblyUnit(name=str(raw["name"]))
        graph.add(unit)
        for type_raw in raw.get("types") or []:
            if not isinstance(type_raw, dict) or not type_raw.get("name"):
                msg = f"Assembly '{unit.name}': every type needs a 'name'"
                raise ValueError(msg)
            unit.declare_type(str(type_raw["name"]))
        pending.append((unit, raw))

    # --- Pass 2: references, base types, members ---
    for unit, raw in pending:
        for ref_name in raw.get("references") or []:
            ref = graph.get(str(ref_name))
            if ref is None:
                msg = f"Assembly '{unit.name}': unknown reference '{ref_name}'"
                raise ValueError(msg)
            unit.references.append(ref)

    for unit, raw in pending:
        for type_raw in raw.get("types") or []:
            compiled = unit.find_types(str(type_raw["name"]))[0]
            context = f"{unit.name}::{compiled.full_name}"
            base = type_raw.get("base")
            if base is not None:
                compiled.base_type = _lookup_type(str(base), unit, graph, context)
            compiled.members.extend(_parse_members(type_raw, unit, graph, context))

    logger.debug(
        "Loaded metadata: %d assemblies, %d types",
        len(graph),
        sum(len(u.types) for u in graph),
    )
    return graph


def load_metadata(path: Path) -> MetadataGraph:
    """Read a metadata graph description.  Raises ``FileNotFoundError`` if absent."""
    return build_metadata(_read_yaml(path))
