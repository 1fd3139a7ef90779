"""Tests for tenant liveness: expiration, reconciliation, filtering."""

from datetime import datetime, timedelta, timezone

import pytest

from postl_admin.common.exceptions import BackendError
from postl_admin.tenants.schemas import Tenant
from postl_admin.tenants.status import (
    STATUS_ACTIVE,
    STATUS_EXPIRED,
    STATUS_LOCKED,
    VIEW_ALL,
    VIEW_LOCKED,
    filter_tenants,
    is_expired,
    is_locked,
    locked_count,
    reconcile,
    stale_tenants,
    status_of,
    tenant_stats,
)

NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


def make(tenant_id="t-1", active=True, expired_at=NOW + timedelta(days=30), **fields) -> Tenant:
    values = {"id": tenant_id, "name": "Shop", "active": active, "expired_at": expired_at}
    values.update(fields)
    return Tenant.model_validate(values)


class TestExpiration:
    def test_future_not_expired(self):
        assert is_expired(make(), NOW) is False

    def test_past_expired(self):
        assert is_expired(make(expired_at=NOW - timedelta(seconds=1)), NOW) is True

    def test_exact_now_not_expired(self):
        assert is_expired(make(expired_at=NOW), NOW) is False

    def test_missing_expiration_counts_as_expired(self):
        assert is_expired(make(expired_at=None), NOW) is True

    def test_naive_timestamp_read_as_utc(self):
        tenant = make(expired_at="2025-06-15T13:00:00")
        assert tenant.expired_at.tzinfo is not None
        assert is_expired(tenant, NOW) is False


class TestStatus:
    def test_active(self):
        assert status_of(make(), NOW) == STATUS_ACTIVE

    def test_locked(self):
        assert status_of(make(active=False), NOW) == STATUS_LOCKED

    def test_expired_wins_over_flag(self):
        assert status_of(make(expired_at=NOW - timedelta(days=1)), NOW) == STATUS_EXPIRED

    def test_locked_includes_expired_but_flagged_active(self):
        assert is_locked(make(expired_at=NOW - timedelta(days=1)), NOW) is True
        assert is_locked(make(), NOW) is False


class TestReconcile:
    async def test_flips_stale_tenants(self, repo):
        stale = make("t-1", expired_at=NOW - timedelta(days=1))
        live = make("t-2")
        result = await reconcile([stale, live], repo, now=NOW)

        assert [t.active for t in result] == [False, True]
        assert repo.calls_to("update") == [("t-1", {"active": False})]

    async def test_already_inactive_passes_through(self, repo):
        inactive = make(active=False, expired_at=NOW - timedelta(days=1))
        result = await reconcile([inactive], repo, now=NOW)
        assert result == [inactive]
        assert repo.calls_to("update") == []

    async def test_write_failure_still_corrects_locally(self, repo):
        repo.fail["update"] = BackendError("permission denied", status_code=403)
        result = await reconcile([make(expired_at=NOW - timedelta(days=1))], repo, now=NOW)
        assert result[0].active is False

    async def test_preserves_order(self, repo):
        tenants = [
            make("a", expired_at=NOW - timedelta(days=2)),
            make("b"),
            make("c", expired_at=NOW - timedelta(days=3)),
        ]
        result = await reconcile(tenants, repo, now=NOW)
        assert [t.id for t in result] == ["a", "b", "c"]
        assert {args[0] for args in repo.calls_to("update")} == {"a", "c"}

    async def test_does_not_mutate_input(self, repo):
        original = make(expired_at=NOW - timedelta(days=1))
        await reconcile([original], repo, now=NOW)
        assert original.active is True

    def test_stale_tenants(self):
        tenants = [make("a", expired_at=NOW - timedelta(days=1)), make("b")]
        assert [t.id for t in stale_tenants(tenants, NOW)] == ["a"]


class TestFilter:
    @pytest.fixture
    def tenants(self):
        return [
            make("1", name="Pho Hanoi", owner_name="Lan", email="lan@pho.vn"),
            make("2", name="Bun Cha", active=False, owner_name=None, email="bun@cha.vn"),
            make("3", name="Banh Mi", owner_name="Minh", email=None,
                 expired_at=NOW - timedelta(days=1)),
        ]

    def test_all_view_keeps_everything(self, tenants):
        assert [t.id for t in filter_tenants(tenants, VIEW_ALL, "", NOW)] == ["1", "2", "3"]

    def test_locked_view(self, tenants):
        assert [t.id for t in filter_tenants(tenants, VIEW_LOCKED, "", NOW)] == ["2", "3"]

    def test_search_case_insensitive_name(self, tenants):
        assert [t.id for t in filter_tenants(tenants, VIEW_ALL, "PHO", NOW)] == ["1"]

    def test_search_owner(self, tenants):
        assert [t.id for t in filter_tenants(tenants, VIEW_ALL, "minh", NOW)] == ["3"]

    def test_search_email(self, tenants):
        assert [t.id for t in filter_tenants(tenants, VIEW_ALL, "cha.vn", NOW)] == ["2"]

    def test_missing_fields_do_not_match(self, tenants):
        assert filter_tenants(tenants, VIEW_ALL, "none", NOW) == []

    def test_blank_query_ignored(self, tenants):
        assert len(filter_tenants(tenants, VIEW_ALL, "   ", NOW)) == 3

    def test_search_and_view_combined(self, tenants):
        assert [t.id for t in filter_tenants(tenants, VIEW_LOCKED, "b", NOW)] == ["2", "3"]
        assert filter_tenants(tenants, VIEW_LOCKED, "pho", NOW) == []

    def test_locked_count(self, tenants):
        assert locked_count(tenants, NOW) == 2


class TestStats:
    def test_counts_by_stored_flag(self):
        stats = tenant_stats([make("1"), make("2", active=False), make("3")])
        assert (stats.total, stats.active, stats.inactive) == (3, 2, 1)

    def test_empty(self):
        stats = tenant_stats([])
        assert (stats.total, stats.active, stats.inactive) == (0, 0, 0)
