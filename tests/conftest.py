"""Shared test fixtures for stylewarden."""

from __future__ import annotations

import pytest

from stylewarden.model.elements import AccessLevel
from stylewarden.model.metadata import (
    AssemblyUnit,
    FieldMember,
    MetadataGraph,
    MethodMember,
    PropertyMember,
)

BASE_LIBRARY = "Uncas.CodeAnalysis.TestLibrary"


@pytest.fixture()
def graph() -> MetadataGraph:
    """Provide a small metadata graph spread over four assemblies.

    ``Acme.Domain`` references the base library, ``System.Core`` and
    ``mscorlib``; entities and repositories derive from base types declared
    in the base library.
    """
    mscorlib = AssemblyUnit(name="mscorlib")
    enumerable = mscorlib.declare_type("System.Collections.Generic.IEnumerable")

    system_core = AssemblyUnit(name="System.Core", references=[mscorlib])
    queryable = system_core.declare_type("System.Linq.IQueryable")
    queryable.base_type = enumerable

    library = AssemblyUnit(name=BASE_LIBRARY, references=[system_core, mscorlib])
    entity = library.declare_type(f"{BASE_LIBRARY}.Entity")
    repository = library.declare_type(f"{BASE_LIBRARY}.Repository")

    domain = AssemblyUnit(name="Acme.Domain", references=[library, system_core, mscorlib])

    order = domain.declare_type("Acme.Domain.Order")
    order.base_type = entity
    order.members.extend(
        [
            FieldMember(name="_total", access=AccessLevel.PRIVATE),
            PropertyMember(name="Total", access=AccessLevel.PUBLIC, setter_access=AccessLevel.PUBLIC),
            PropertyMember(name="Id", access=AccessLevel.PUBLIC),
            PropertyMember(
                name="Status", access=AccessLevel.PUBLIC, setter_access=AccessLevel.PRIVATE
            ),
        ]
    )

    rush_order = domain.declare_type("Acme.Domain.RushOrder")
    rush_order.base_type = order
    rush_order.members.append(
        PropertyMember(name="Deadline", access=AccessLevel.PUBLIC, setter_access=AccessLevel.PUBLIC)
    )

    invoice = domain.declare_type("Acme.Domain.Invoice")
    invoice.members.append(
        PropertyMember(name="Number", access=AccessLevel.PUBLIC, setter_access=AccessLevel.PUBLIC)
    )

    order_query = system_core.declare_type("System.Linq.IQueryable<Acme.Domain.Order>")
    order_query.base_type = queryable
    order_list = mscorlib.declare_type("System.Collections.Generic.IEnumerable<Acme.Domain.Order>")
    order_list.base_type = enumerable

    # Queryable by inheritance only; the short name does not say so.
    order_search = domain.declare_type("Acme.Domain.OrderSearch")
    order_search.base_type = queryable

    repo = domain.declare_type("Acme.Domain.OrderRepository")
    repo.base_type = repository
    repo.members.extend(
        [
            MethodMember(name="Query", access=AccessLevel.PUBLIC, return_type=order_query),
            MethodMember(name="All", access=AccessLevel.PUBLIC, return_type=order_list),
            MethodMember(name="Search", access=AccessLevel.PUBLIC, return_type=order_search),
            MethodMember(name="RawQuery", access=AccessLevel.PRIVATE, return_type=order_query),
            MethodMember(name="Save", access=AccessLevel.PUBLIC),
        ]
    )

    return MetadataGraph([mscorlib, system_core, library, domain])
