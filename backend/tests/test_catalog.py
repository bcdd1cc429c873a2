"""Tests for the in-memory and database-backed product catalogs."""

from decimal import Decimal

import pytest

from pharmreturns.seed.catalog_data import NDC_PRODUCTS
from pharmreturns.seed.catalog_seed import clean_all, seed_products, verify_data
from pharmreturns.services.catalog import (
    DatabaseCatalog,
    EligibilityPolicy,
    InMemoryCatalog,
    record_from_mapping,
)
from tests.conftest import make_product


# ── Records ───────────────────────────────────────────────────────────────────

class TestRecords:
    def test_policy_rejects_out_of_range_credit(self):
        with pytest.raises(ValueError):
            EligibilityPolicy(eligible=True, return_window=180, credit_percentage=101)

    def test_policy_rejects_negative_window(self):
        with pytest.raises(ValueError):
            EligibilityPolicy(eligible=True, return_window=-1, credit_percentage=50)

    def test_unknown_dea_schedule_rejected(self):
        with pytest.raises(ValueError):
            make_product(dea_schedule="CVI")

    def test_display_name_falls_back_to_generic(self):
        assert make_product(proprietary_name=None).display_name == "testolamine"
        assert make_product().display_name == "Testol"

    def test_record_from_seed_row(self):
        row = next(p for p in NDC_PRODUCTS if p["ndc"] == "00406-8530-01")
        record = record_from_mapping(row)
        assert record.dea_schedule == "CII"
        assert record.wac == Decimal("2.50")
        assert record.return_eligibility.requires_dea_form is True
        assert record.return_eligibility.credit_percentage == 0


# ── In-memory catalog ─────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestInMemoryCatalog:
    async def test_seed_catalog_size(self, seed_catalog):
        assert await seed_catalog.count() == len(NDC_PRODUCTS)

    async def test_lookup_normalizes(self, seed_catalog):
        record = await seed_catalog.lookup("69618001001")
        assert record is not None
        assert record.proprietary_name == "Tylenol"

    async def test_lookup_unknown_and_malformed(self, seed_catalog):
        assert await seed_catalog.lookup("00000-0000-00") is None
        assert await seed_catalog.lookup("garbage") is None

    async def test_search_by_manufacturer_sorted(self, seed_catalog):
        records = await seed_catalog.search("pfizer")
        assert [r.display_name for r in records] == ["Advil", "Lipitor", "Xanax"]

    async def test_search_by_generic_name(self, seed_catalog):
        records = await seed_catalog.search("AMOXICILLIN")
        assert [r.ndc for r in records] == ["00093-2263-01"]

    async def test_search_by_ndc(self, seed_catalog):
        records = await seed_catalog.search("0071-0156-23")
        assert [r.ndc for r in records] == ["00071-0156-23"]

    async def test_search_limit(self, seed_catalog):
        assert len(await seed_catalog.search(limit=3)) == 3

    def test_malformed_record_rejected(self):
        with pytest.raises(ValueError):
            InMemoryCatalog([make_product(ndc="123")])


# ── Database catalog ──────────────────────────────────────────────────────────

@pytest.mark.asyncio
class TestDatabaseCatalog:
    async def test_seed_is_idempotent(self, db_session):
        assert await seed_products(db_session, NDC_PRODUCTS) == len(NDC_PRODUCTS)
        assert await seed_products(db_session, NDC_PRODUCTS) == 0
        assert await DatabaseCatalog(db_session).count() == len(NDC_PRODUCTS)

    async def test_lookup(self, db_session):
        await seed_products(db_session, NDC_PRODUCTS)
        catalog = DatabaseCatalog(db_session)

        record = await catalog.lookup("0071-0156-23")

        assert record is not None
        assert record.ndc == "00071-0156-23"
        assert record.proprietary_name == "Lipitor"
        assert record.wac == Decimal("5.50")
        assert record.return_eligibility.credit_percentage == 100
        assert record.return_eligibility.return_window == 180

    async def test_lookup_missing(self, db_session):
        await seed_products(db_session, NDC_PRODUCTS)
        catalog = DatabaseCatalog(db_session)
        assert await catalog.lookup("00000-0000-00") is None
        assert await catalog.lookup("nope") is None

    async def test_search(self, db_session):
        await seed_products(db_session, NDC_PRODUCTS)
        catalog = DatabaseCatalog(db_session)

        records = await catalog.search("oxycodone")
        assert [r.ndc for r in records] == ["00406-8530-01"]
        assert records[0].dea_schedule == "CII"

        by_ndc = await catalog.search("00009-0029-01")
        assert [r.proprietary_name for r in by_ndc] == ["Xanax"]

    async def test_clean_and_verify(self, db_session, capsys):
        await seed_products(db_session, NDC_PRODUCTS)
        assert await verify_data(db_session) is True
        assert "controlled" in capsys.readouterr().out

        await clean_all(db_session)
        assert await verify_data(db_session) is False


class TestProductPrice:
    @pytest.mark.parametrize("wac", ["-5", "NaN", "Infinity", "-Infinity"])
    def test_bad_wac_rejected(self, wac):
        with pytest.raises(ValueError, match="wac"):
            make_product(wac=wac)

    def test_zero_wac_allowed(self):
        assert make_product(wac="0").wac == 0
