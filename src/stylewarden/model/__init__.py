"""Host-facing data model: syntax element trees and compiled metadata graphs."""

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

__all__ = [
    "AccessLevel",
    "AssemblyUnit",
    "CompiledType",
    "ElementKind",
    "FieldMember",
    "Member",
    "MetadataGraph",
    "MethodMember",
    "PropertyMember",
    "SourceDocument",
    "Statement",
    "SyntaxElement",
]
