"""
Database seeding script for local development.

Creates an ADMIN and a RIDER, plus a few delivered parcels assigned to the
rider so the cash-out flow can be exercised right away.
"""

import asyncio
import sys
from datetime import datetime, timedelta
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from sqlalchemy import select

from courier_backend.app.core.jwt import create_access_token
from courier_backend.app.db.session import AsyncSessionLocal, Base, engine
from courier_backend.app.domain.delivery.status_machine import activate_earning
from courier_backend.app.models.enums import UserRole
from courier_backend.app.models.parcel import Parcel
from courier_backend.app.models.parcel_enums import DeliveryStatus
from courier_backend.app.models.user import User

DEMO_PARCELS = [
    # reference, cost, sender region, receiver region
    ("DEMO-001", Decimal("1000"), "Dhaka", "Dhaka"),
    ("DEMO-002", Decimal("1500"), "Dhaka", "Chattogram"),
    ("DEMO-003", Decimal("800"), "Sylhet", "Sylhet"),
]


async def seed_demo_data():
    """
    Seed demo users and delivered parcels.

    Creates:
    - 1 ADMIN user
    - 1 RIDER user
    - 3 delivered parcels assigned to the rider
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting demo seeding...")

        result = await db.execute(select(User).where(User.username == "rider01"))
        if result.scalar_one_or_none():
            print("ℹ️  Demo data already exists, skipping seeding")
            return

        admin = User(email="admin@courier.local", username="admin", role=UserRole.ADMIN)
        rider = User(email="rider01@courier.local", username="rider01", role=UserRole.RIDER)
        db.add_all([admin, rider])
        await db.flush()

        delivered_at = datetime.utcnow() - timedelta(days=len(DEMO_PARCELS))
        for reference, cost, sender, receiver in DEMO_PARCELS:
            parcel = Parcel(
                reference_code=reference,
                cost=cost,
                sender_region=sender,
                receiver_region=receiver,
                delivery_status=DeliveryStatus.DELIVERED,
                assigned_rider_id=rider.id,
                assigned_at=delivered_at - timedelta(hours=4),
                delivered_at=delivered_at,
                earning=Decimal("0"),
                paid_amount=Decimal("0"),
            )
            activate_earning(parcel)
            db.add(parcel)
            print(f"✅ Created {reference}: cost {cost}, earning {parcel.earning}")
            delivered_at += timedelta(days=1)

        await db.commit()

        rider_token = create_access_token({"sub": rider.username, "user_id": rider.id, "role": rider.role.value})
        admin_token = create_access_token({"sub": admin.username, "user_id": admin.id, "role": admin.role.value})

        print("\n🎉 Demo seeding completed successfully!")
        print(f"\nRIDER token:\n  {rider_token}")
        print(f"\nADMIN token:\n  {admin_token}")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
