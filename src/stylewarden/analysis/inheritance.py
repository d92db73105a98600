"""Cross-assembly inheritance resolution.

Answers "does type T derive from base type B?" where B is named by an assembly
name prefix and a full type name, and may live in an assembly that T's own
assembly references.  Resolution is a plain walk over the metadata graph.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stylewarden.model.metadata import AssemblyUnit, CompiledType

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ResolutionError(Exception):
    """Raised when the base type of an inheritance query cannot be located."""


class BaseAssemblyNotFound(ResolutionError):
    """No assembly matching the base assembly prefix is visible from the type."""


class AmbiguousBaseAssembly(ResolutionError):
    """Several referenced assemblies match the base assembly prefix."""


class BaseTypeNotFound(ResolutionError):
    """The base assembly does not declare exactly one type with the given name."""


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def _is_base_assembly(assembly: AssemblyUnit, prefix: str) -> bool:
    return assembly.name.lower().startswith(prefix.lower())


class InheritanceResolver:
    """Resolves base types across assembly references.

    One instance is shared by every rule of an engine.  It keeps no state
    between queries.
    """

    def resolve_base_assembly(self, type_: CompiledType, prefix: str) -> AssemblyUnit:
        """Return the assembly expected to declare the base type.

        The type's own assembly wins when its name starts with *prefix*
        (case-insensitive).  Otherwise exactly one direct reference must match.
        """
        own = type_.assembly
        if _is_base_assembly(own, prefix):
            return own

        matches = [ref for ref in own.references if _is_base_assembly(ref, prefix)]
        if not matches:
            msg = (
                f"No assembly starting with '{prefix}' is referenced by "
                f"'{own.name}' (type '{type_.full_name}')"
            )
            raise BaseAssemblyNotFound(msg)
        if len(matches) > 1:
            names = ", ".join(ref.name for ref in matches)
            msg = (
                f"Assembly '{own.name}' references several assemblies starting "
                f"with '{prefix}': {names}"
            )
            raise AmbiguousBaseAssembly(msg)
        return matches[0]

    def resolve_base_type(
        self, type_: CompiledType, prefix: str, full_name: str
    ) -> CompiledType:
        """Locate the single type named *full_name* in the base assembly."""
        assembly = self.resolve_base_assembly(type_, prefix)
        found = assembly.find_types(full_name)
        if len(found) != 1:
            qualifier = "no type" if not found else f"{len(found)} types"
            msg = f"Assembly '{assembly.name}' declares {qualifier} named '{full_name}'"
            raise BaseTypeNotFound(msg)
        return found[0]

    def inherits_from(self, type_: CompiledType, prefix: str, full_name: str) -> bool:
        """Return True if *type_*'s base chain reaches the named base type.

        An acyclic type is not its own base.  Raises a :class:`ResolutionError` subclass
        when the base type itself cannot be located.
        """
        target = self.resolve_base_type(type_, prefix, full_name)
        for base in type_.base_chain():
            if base is target:
                return True
        logger.debug("'%s' does not derive from '%s'", type_.full_name, full_name)
        return False


_default_resolver = InheritanceResolver()


def inherits_from(type_: CompiledType, prefix: str, full_name: str) -> bool:
    """Module-level shortcut for :meth:`InheritanceResolver.inherits_from`."""
    return _default_resolver.inherits_from(type_, prefix, full_name)
