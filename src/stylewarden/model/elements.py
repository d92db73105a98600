"""Syntax element model: the read-only tree a host parser hands to the engine."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field


class ElementKind(enum.Enum):
    """Kind of a syntactic element."""

    ROOT = "root"
    NAMESPACE = "namespace"
    CLASS = "class"
    STRUCT = "struct"
    INTERFACE = "interface"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    FIELD = "field"
    PROPERTY = "property"
    OTHER = "other"


class AccessLevel(enum.Enum):
    """Declared (effective) access modifier of an element or member."""

    PUBLIC = "public"
    INTERNAL = "internal"
    PROTECTED = "protected"
    PROTECTED_INTERNAL = "protected_internal"
    PRIVATE = "private"


@dataclass(frozen=True)
class Statement:
    """A statement with its source line and any statements nested inside it."""

    line: int
    statements: tuple[Statement, ...] = ()

    def last_line(self) -> int:
        """Return the furthest line reached by this statement or a nested one."""
        last = self.line
        for nested in self.statements:
            last = max(last, nested.last_line())
        return last


@dataclass(frozen=True)
class SyntaxElement:
    """One node of the parsed-source tree.

    ``statements`` are the element's own child statements; ``children`` are
    nested elements (methods of a class, classes of a namespace, ...).
    """

    kind: ElementKind
    name: str
    line: int
    access: AccessLevel = AccessLevel.PRIVATE
    generated: bool = False
    const: bool = False
    statements: tuple[Statement, ...] = ()
    children: tuple[SyntaxElement, ...] = field(default=())

    def last_line(self) -> int:
        """Return the furthest line reached by any statement of this element.

        Statements of descendant elements count too, so a class is measured by
        the bodies of its methods.  Without statements the element ends on
        its own declaration line.
        """
        last = self.line
        for statement in self.statements:
            last = max(last, statement.last_line())
        for child in self.children:
            last = max(last, child.last_line())
        return last

    def span(self) -> int:
        """Number of source lines from the declaration to the furthest statement."""
        return self.last_line() - self.line + 1


@dataclass(frozen=True)
class SourceDocument:
    """A parsed document: its path, element tree, and raw unparsed text.

    ``root`` is ``None`` when the host parser produced no tree.
    """

    path: str
    root: SyntaxElement | None
    source_text: str = ""
