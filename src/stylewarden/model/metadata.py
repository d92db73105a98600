"""Compiled metadata model: assemblies, types, members and their references.

The graph is built once by a host reader (or :mod:`stylewarden.loader`) and is
treated as read-only while rules run.  Types compare by identity, so a
visited-set of types is safe even when two assemblies declare the same name.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from stylewarden.model.elements import AccessLevel

if TYPE_CHECKING:
    from collections.abc import Iterator


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FieldMember:
    """A field declared on a compiled type."""

    name: str
    access: AccessLevel


@dataclass(frozen=True)
class PropertyMember:
    """A property; ``setter_access`` is ``None`` for get-only properties."""

    name: str
    access: AccessLevel
    setter_access: AccessLevel | None = None


@dataclass(frozen=True, eq=False)
class MethodMember:
    """A method; ``return_type`` is ``None`` for ``void``."""

    name: str
    access: AccessLevel
    return_type: CompiledType | None = field(default=None, repr=False)


Member = FieldMember | PropertyMember | MethodMember


# ---------------------------------------------------------------------------
# Types and assemblies
# ---------------------------------------------------------------------------


@dataclass(eq=False)
class CompiledType:
    """Metadata view of a declared type.

    ``assembly`` is a back-reference to the declaring unit and ``base_type``
    may point into another assembly.
    """

    full_name: str
    assembly: AssemblyUnit = field(repr=False)
    members: list[Member] = field(default_factory=list, repr=False)
    base_type: CompiledType | None = field(default=None, repr=False)

    @property
    def name(self) -> str:
        """Short name: namespace stripped, generic arguments kept.

        ``System.Linq.IQueryable<Acme.Foo>`` becomes ``IQueryable<Acme.Foo>``.
        """
        head, sep, generic = self.full_name.partition("<")
        return head.rsplit(".", 1)[-1] + sep + generic

    @property
    def properties(self) -> list[PropertyMember]:
        return [m for m in self.members if isinstance(m, PropertyMember)]

    @property
    def methods(self) -> list[MethodMember]:
        return [m for m in self.members if isinstance(m, MethodMember)]

    def base_chain(self) -> Iterator[CompiledType]:
        """Yield base types nearest first.

        A cyclic chain yields each member once, including the type that closes
        the loop, so a type on its own cycle appears as its own base.
        """
        visited: set[CompiledType] = set()
        current = self.base_type
        while current is not None and current not in visited:
            visited.add(current)
            yield current
            current = current.base_type


@dataclass(eq=False)
class AssemblyUnit:
    """A compiled unit: its declared types and the units it references."""

    name: str
    types: list[CompiledType] = field(default_factory=list, repr=False)
    references: list[AssemblyUnit] = field(default_factory=list, repr=False)

    def declare_type(self, full_name: str) -> CompiledType:
        """Create a type in this assembly.  Full names are unique per assembly."""
        if self.find_types(full_name):
            msg = f"Assembly '{self.name}': duplicate type '{full_name}'"
            raise ValueError(msg)
        compiled = CompiledType(full_name=full_name, assembly=self)
        self.types.append(compiled)
        return compiled

    def find_types(self, full_name: str) -> list[CompiledType]:
        """Return every type declared with *full_name* (normally zero or one)."""
        return [t for t in self.types if t.full_name == full_name]

    def get_type(self, full_name: str) -> CompiledType | None:
        found = self.find_types(full_name)
        return found[0] if found else None


class MetadataGraph:
    """All assemblies known to one analysis, indexed by name."""

    def __init__(self, assemblies: list[AssemblyUnit] | None = None) -> None:
        self._assemblies: dict[str, AssemblyUnit] = {}
        for unit in assemblies or []:
            self.add(unit)

    def add(self, unit: AssemblyUnit) -> None:
        if unit.name in self._assemblies:
            msg = f"Duplicate assembly '{unit.name}'"
            raise ValueError(msg)
        self._assemblies[unit.name] = unit

    def get(self, name: str) -> AssemblyUnit | None:
        return self._assemblies.get(name)

    def __iter__(self) -> Iterator[AssemblyUnit]:
        return iter(self._assemblies.values())

    def __len__(self) -> int:
        return len(self._assemblies)

    @staticmethod
    def transitive_references(unit: AssemblyUnit) -> list[AssemblyUnit]:
        """Return every unit reachable from *unit*, breadth-first, excluding itself.

        Reference cycles are tolerated: each unit is visited at most once.
        """
        seen: set[int] = {id(unit)}
        reachable: list[AssemblyUnit] = []
        queue: deque[AssemblyUnit] = deque(unit.references)
        while queue:
            current = queue.popleft()
            if id(current) in seen:
                continue
            seen.add(id(current))
            reachable.append(current)
            queue.extend(current.references)
        return reachable
