"""
Tests for tenant resolution precedence.
"""

import itertools

import pytest

from gateway_core.tenants import TenantResolver, TenantSource


@pytest.fixture
def resolver() -> TenantResolver:
    return TenantResolver(
        query_params=("id", "customId", "pin", "license"),
        mount_prefixes=("biometricos",),
    )


def test_numeric_path_segment_is_stripped(resolver: TenantResolver) -> None:
    resolution = resolver.resolve("/41038/iclock/cdata", {"SN": "X"})
    assert resolution.tenant_id == "41038"
    assert resolution.source is TenantSource.PATH
    assert resolution.path == "/iclock/cdata"


def test_mount_prefix_with_numeric_segment(resolver: TenantResolver) -> None:
    resolution = resolver.resolve("/biometricos/41038/iclock/cdata", {})
    assert resolution.tenant_id == "41038"
    assert resolution.path == "/iclock/cdata"


def test_non_numeric_segment_is_not_a_tenant(resolver: TenantResolver) -> None:
    resolution = resolver.resolve("/acme/iclock/cdata", {})
    assert resolution.tenant_id is None
    assert resolution.source is TenantSource.NONE
    assert resolution.path == "/acme/iclock/cdata"


def test_query_parameter_synonym(resolver: TenantResolver) -> None:
    resolution = resolver.resolve("/iclock/cdata", {"SN": "X", "customId": "77"})
    assert resolution.tenant_id == "77"
    assert resolution.source is TenantSource.QUERY


def test_blank_query_parameter_is_ignored(resolver: TenantResolver) -> None:
    resolution = resolver.resolve("/iclock/cdata", {"id": " ", "license": "L1"})
    assert resolution.tenant_id == "L1"


def test_fallback_used_when_nothing_else(resolver: TenantResolver) -> None:
    resolver.set_fallback("900")
    resolution = resolver.resolve("/iclock/cdata", {"SN": "X"})
    assert resolution.tenant_id == "900"
    assert resolution.source is TenantSource.FALLBACK


def test_resolve_never_changes_fallback(resolver: TenantResolver) -> None:
    resolver.resolve("/41038/iclock/cdata", {"pin": "12"})
    assert resolver.fallback is None


def test_clear_fallback(resolver: TenantResolver) -> None:
    resolver.set_fallback("900")
    resolver.clear_fallback()
    assert resolver.resolve("/iclock/getrequest", {}).tenant_id is None


def test_blank_fallback_rejected(resolver: TenantResolver) -> None:
    with pytest.raises(ValueError):
        resolver.set_fallback("  ")


def test_instances_are_independent() -> None:
    first = TenantResolver()
    second = TenantResolver()
    first.set_fallback("1")
    assert second.fallback is None


@pytest.mark.parametrize(
    "path_tenant,query_tenant,fallback",
    list(itertools.product(["41038", None], ["77", None], ["900", None])),
)
def test_precedence_for_every_combination(path_tenant, query_tenant, fallback) -> None:
    resolver = TenantResolver(query_params=("customId",), fallback=fallback)
    path = f"/{path_tenant}/iclock/cdata" if path_tenant else "/iclock/cdata"
    query = {"customId": query_tenant} if query_tenant else {}

    resolution = resolver.resolve(path, query)

    expected = path_tenant or query_tenant or fallback
    assert resolution.tenant_id == expected
    assert resolution.path == "/iclock/cdata"
