#!/usr/bin/env python3
"""
Seed a development database: one tenant, one landlord with a listing, three
providers with earnings, and print a bearer token for each.
Run from the project root: python -m scripts.seed_dev_data
"""
import os
import sys

# project root on PYTHONPATH
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from directrent.db.session import SessionLocal, init_db
from directrent.domain.enums import Role, SubscriptionTier
from directrent.identity.tokens import TokenVerifier
from directrent.models.property import Property
from directrent.models.user import User
from directrent.services.payouts.service import PayoutLedger

PROVIDERS = [
    ("1", "0241000001", "Kwame Mensah", "1540"),
    ("2", "0241000002", "Ama Serwaa", "850"),
    ("3", "0241000003", "Kofi Boateng", "2100"),
]


def _get_or_create_user(db, user_id: str, phone: str, full_name: str, role: Role) -> User:
    user = db.query(User).filter(User.id == user_id).one_or_none()
    if user:
        return user
    user = User(
        id=user_id,
        phone=phone,
        full_name=full_name,
        role=role.value,
        subscription_tier=SubscriptionTier.FREE.value,
    )
    db.add(user)
    db.commit()
    return user


def main():
    init_db()
    db = SessionLocal()
    verifier = TokenVerifier()
    try:
        tenant = _get_or_create_user(db, "tenant-1", "0551234567", "Efua Tenant", Role.TENANT)
        landlord = _get_or_create_user(db, "landlord-1", "0207654321", "Yaw Landlord", Role.LANDLORD)
        if not db.query(Property).filter(Property.id == "property-1").one_or_none():
            db.add(Property(
                id="property-1",
                owner_id=landlord.id,
                title="Self-contained 1 bedroom, East Legon",
                city="Accra",
                neighborhood="East Legon",
            ))
            db.commit()

        ledger = PayoutLedger(db)
        print("Tokens:\n")
        print(f"  tenant {tenant.id}\n    {verifier.create_access_token(tenant.id)}\n")
        for provider_id, phone, name, earnings in PROVIDERS:
            _get_or_create_user(db, provider_id, phone, name, Role.PROVIDER)
            if ledger.get_balance(provider_id) == 0:
                ledger.credit_earnings(provider_id, earnings)
            print(f"  provider {provider_id} ({name}, balance {ledger.get_balance(provider_id)})")
            print(f"    {verifier.create_access_token(provider_id)}\n")
    finally:
        db.close()


if __name__ == "__main__":
    main()
