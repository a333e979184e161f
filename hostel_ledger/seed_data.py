"""
Database seeding script for reference data.

Creates the reference resident, the "October 2024" dues and a few sample
complaints for development. Run this script after the database is set up.
"""

import asyncio
from datetime import date

from sqlalchemy import select

from hostel_ledger.app.db.session import AsyncSessionLocal, engine, Base
from hostel_ledger.app.domain.complaints.tracker import ComplaintTracker
from hostel_ledger.app.domain.dues.registry import DuePeriodService
from hostel_ledger.app.models.billing_enums import DueCategory
from hostel_ledger.app.models.resident import Resident
from hostel_ledger.app.schemas.billing import DueItemCreate
from hostel_ledger.app.schemas.complaint import ATRCreate
from hostel_ledger.app.schemas.resident import ResidentCreate
from hostel_ledger.app.services.residents import ResidentService

# Import models to ensure they are registered with Base
from hostel_ledger.app.models.payment_transaction import PaymentTransaction
from hostel_ledger.app.models.item_claim import ItemClaim

SEED_ACTOR = "seed"


async def seed_data():
    """
    Seed reference data.

    Creates:
    - Resident Amit Kumar (2024CS10001, Hall 5, G-102)
    - October 2024 dues: mess 1800, rent 750, amenities 300
    - One pending and one resolved complaint
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting seeding...")

        result = await db.execute(select(Resident).where(Resident.roll_number == "2024CS10001"))
        if result.scalar_one_or_none():
            print("ℹ️  Reference resident already exists, skipping seeding")
            return

        resident = await ResidentService.create(db, ResidentCreate(
            name="Amit Kumar",
            roll_number="2024CS10001",
            hall="Hall 5",
            room_number="G-102",
            department="Computer Science",
            email="amit.kumar@example.edu",
        ), actor=SEED_ACTOR)
        print(f"✅ Created resident {resident.name} (id: {resident.id})")

        period = await DuePeriodService.create(db, resident.id, "October 2024", [
            DueItemCreate(category=DueCategory.MESS, amount=1800),
            DueItemCreate(category=DueCategory.RENT, amount=750),
            DueItemCreate(category=DueCategory.AMENITIES, amount=300),
        ], actor=SEED_ACTOR)
        print(f"✅ Created due period '{period.period_label}' (id: {period.id}, total: 2850)")

        await ComplaintTracker.create(
            db, resident.id, "electrical", "Ceiling fan not working",
            "The ceiling fan in G-102 stopped working yesterday evening.", "high", actor=SEED_ACTOR
        )
        tap = await ComplaintTracker.create(
            db, resident.id, "plumbing", "Leaking tap",
            "The bathroom tap leaks continuously.", "medium", actor=SEED_ACTOR
        )
        await ComplaintTracker.advance(db, tap, actor=SEED_ACTOR)
        await ComplaintTracker.attach_atr(db, tap, ATRCreate(
            action_taken="Tap replaced",
            action_by="Mr. Sharma",
            completion_date=date(2024, 10, 18),
        ), actor=SEED_ACTOR)
        print("✅ Created 2 complaints (1 pending, 1 resolved)")

        print("\n🎉 Seeding completed successfully!")


if __name__ == "__main__":
    asyncio.run(seed_data())
