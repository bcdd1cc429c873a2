"""
Catalog seed: create the ndc_products table and load product data.

Usage:
    python -m pharmreturns.seed.catalog_seed                 # Seed bundled catalog
    python -m pharmreturns.seed.catalog_seed --clean         # Drop all rows + re-seed
    python -m pharmreturns.seed.catalog_seed --verify        # Just verify existing data
    python -m pharmreturns.seed.catalog_seed --csv FILE.csv  # Also import a product file
"""

import asyncio
import sys
import time
from pathlib import Path

from sqlalchemy import delete, select, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from pharmreturns.config import settings
from pharmreturns.database import Base, make_engine
from pharmreturns.models import NDCProduct
from pharmreturns.seed.catalog_data import NDC_PRODUCTS
from pharmreturns.seed.catalog_import import parse_catalog_csv

BATCH_SIZE = 1000


async def seed_products(session: AsyncSession, rows: list[dict]) -> int:
    """Insert rows whose NDC is not already present. Returns count inserted."""
    existing = set((await session.execute(select(NDCProduct.ndc))).scalars())
    count = 0
    batch = []
    for row in rows:
        if row["ndc"] in existing:
            continue
        existing.add(row["ndc"])
        batch.append(NDCProduct(**row))
        count += 1
        if len(batch) >= BATCH_SIZE:
            session.add_all(batch)
            await session.flush()
            batch = []

    if batch:
        session.add_all(batch)
        await session.flush()
    return count


async def clean_all(session: AsyncSession) -> None:
    await session.execute(delete(NDCProduct))
    await session.flush()


async def verify_data(session: AsyncSession) -> bool:
    total = (await session.execute(select(func.count()).select_from(NDCProduct))).scalar() or 0
    controlled = (await session.execute(
        select(func.count()).select_from(NDCProduct).where(NDCProduct.dea_schedule.is_not(None))
    )).scalar() or 0
    print(f"  ndc_products: {total:,} rows ({controlled:,} controlled)")
    return total > 0


def _csv_path(argv: list[str]) -> Path | None:
    if "--csv" not in argv:
        return None
    idx = argv.index("--csv")
    if idx + 1 >= len(argv):
        print("--csv requires a file path")
        sys.exit(2)
    return Path(argv[idx + 1])


async def run_seed(argv: list[str] | None = None) -> bool:
    argv = sys.argv[1:] if argv is None else argv
    start = time.time()
    clean = "--clean" in argv
    verify_only = "--verify" in argv
    csv_path = _csv_path(argv)

    engine = make_engine(settings.database_url)
    async_sess = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        async with async_sess() as session:
            if verify_only:
                return await verify_data(session)

            if clean:
                await clean_all(session)

            print("=" * 60)
            print("Pharmacy Returns: NDC Catalog Seed")
            print("=" * 60)

            print("\n[1/2] Bundled catalog")
            inserted = await seed_products(session, NDC_PRODUCTS)
            print(f"  inserted {inserted} products")

            print("\n[2/2] CSV import")
            if csv_path is None:
                print("  skipped (no --csv)")
            else:
                result = parse_catalog_csv(csv_path.read_text(encoding="utf-8-sig"))
                imported = await seed_products(session, result.rows)
                print(f"  inserted {imported} of {len(result.rows)} parsed rows, "
                      f"{len(result.skipped)} skipped")

            await session.commit()
            ok = await verify_data(session)
    finally:
        await engine.dispose()

    print(f"\nSeed completed in {time.time() - start:.1f}s")
    return ok


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(run_seed()) else 1)
