#!/usr/bin/env python3
"""
Seed sample accounts and verified providers around a city centre
Run with: python populate_providers.py [--lat 17.3850 --lng 78.4867]
"""
import argparse
import asyncio
from decimal import Decimal

from sqlalchemy import select

from roadside.database import async_session_maker, init_db, close_db
from roadside.models import User, UserRole, Provider, FuelStation, Mechanic
from roadside.services.auth_service import AuthService

# Offsets in degrees from the centre, then business details
SAMPLE_PROVIDERS = [
    (FuelStation, 0.0000, 0.0000, {
        "business_name": "Shell Fuel Station",
        "address": "123 Main Road, City Center",
        "phone": "+919876543210",
        "email": "shell@example.com",
        "assistance_fee": Decimal("120"),
        "travel_fee_per_km": Decimal("12"),
        "opening_time": "06:00",
        "closing_time": "22:00",
        "fuel_prices": {"petrol": 97.5, "diesel": 90.2, "cng": 76.8},
    }),
    (FuelStation, 0.0100, -0.0100, {
        "business_name": "BP Fuel Point",
        "address": "456 Market Street, Downtown",
        "phone": "+919876543211",
        "email": "bp@example.com",
        "assistance_fee": Decimal("100"),
        "travel_fee_per_km": Decimal("10"),
        "opening_time": "05:00",
        "closing_time": "23:00",
        "fuel_prices": {"petrol": 96.8, "diesel": 89.5, "cng": 0},
    }),
    (FuelStation, -0.0100, -0.0200, {
        "business_name": "Reliance Fuel Center",
        "address": "789 Business Park, Tech Area",
        "phone": "+919876543212",
        "email": "reliance@example.com",
        "assistance_fee": Decimal("150"),
        "travel_fee_per_km": Decimal("15"),
        "fuel_prices": {"petrol": 98.2, "diesel": 91.0, "cng": 78.5},
    }),
    (Mechanic, 0.0100, 0.0100, {
        "business_name": "City Auto Repair",
        "address": "321 Service Road, Industrial Area",
        "phone": "+919876543213",
        "email": "cityauto@example.com",
        "assistance_fee": Decimal("200"),
        "travel_fee_per_km": Decimal("15"),
        "opening_time": "08:00",
        "closing_time": "20:00",
        "services": ["engine repair", "tyre change", "battery replacement", "general service"],
    }),
    (Mechanic, -0.0200, -0.0300, {
        "business_name": "Quick Fix Mechanics",
        "address": "654 Fast Lane, Commercial Zone",
        "phone": "+919876543214",
        "email": "quickfix@example.com",
        "assistance_fee": Decimal("180"),
        "travel_fee_per_km": Decimal("12"),
        "opening_time": "07:00",
        "closing_time": "21:00",
        "services": ["tyre puncture", "battery jumpstart", "fuel delivery", "lockout service"],
    }),
    (Mechanic, 0.0200, 0.0000, {
        "business_name": "Pro Car Services",
        "address": "987 Expert Road, Service Zone",
        "phone": "+919876543215",
        "email": "procar@example.com",
        "assistance_fee": Decimal("250"),
        "travel_fee_per_km": Decimal("20"),
        "opening_time": "09:00",
        "closing_time": "18:00",
        "services": ["engine diagnostics", "electrical repair", "ac service", "brake repair"],
    }),
]

SAMPLE_TRAVELLER = {
    "email": "traveller@example.com",
    "phone": "+919800000000",
    "name": "Sample Traveller",
}

async def get_or_create_user(session, email: str, phone: str, name: str, role: UserRole) -> User:
    result = await session.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if user:
        return user

    user = User(email=email, phone=phone, name=name, role=role)
    session.add(user)
    await session.flush()
    return user

async def populate_providers(session, center_lat: float, center_lng: float):
    """Create one account and one verified provider per sample business"""
    print("📝 Populating providers...")

    for variant, d_lat, d_lng, details in SAMPLE_PROVIDERS:
        details = dict(details)
        fuel_prices = details.pop("fuel_prices", None)
        services = details.pop("services", None)

        user = await get_or_create_user(
            session, details["email"], details["phone"], details["business_name"], variant.ROLE
        )

        existing = await session.execute(select(Provider).where(Provider.user_id == user.id))
        if existing.scalar_one_or_none():
            print(f"  ⏭️  {details['business_name']} already exists, skipping")
            continue

        provider = variant(
            user_id=user.id,
            latitude=center_lat + d_lat,
            longitude=center_lng + d_lng,
            is_available=True,
            is_verified=True,
            **details
        )
        provider.apply_capabilities(services=services, fuel_prices=fuel_prices)
        session.add(provider)
        await session.commit()

        print(f"  ✅ {provider.business_name} - {provider.business_type}")
        print(f"     📍 {provider.latitude:.4f}, {provider.longitude:.4f}")
        print(f"     🔑 {AuthService.issue_token(user.id)}")

async def populate_traveller(session):
    print("\n📝 Populating traveller account...")
    user = await get_or_create_user(session, role=UserRole.TRAVELLER, **SAMPLE_TRAVELLER)
    await session.commit()
    print(f"  ✅ {user.email}")
    print(f"     🔑 {AuthService.issue_token(user.id)}")

async def main():
    parser = argparse.ArgumentParser(description="Seed sample providers")
    parser.add_argument("--lat", type=float, default=17.3850, help="Centre latitude")
    parser.add_argument("--lng", type=float, default=78.4867, help="Centre longitude")
    args = parser.parse_args()

    await init_db()
    try:
        async with async_session_maker() as session:
            await populate_providers(session, args.lat, args.lng)
            await populate_traveller(session)
    finally:
        await close_db()

    print("\n🎉 Sample data creation completed!")

if __name__ == "__main__":
    asyncio.run(main())
