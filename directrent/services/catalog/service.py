"""
CatalogStore: read-only property lookup used by the unlock engine.
"""
from sqlalchemy.orm import Session

from directrent.models.property import Property
from directrent.models.user import User


class CatalogStore:
    def __init__(self, db: Session):
        self.db = db

    def exists(self, target_id: str) -> bool:
        if not target_id:
            return False
        return self.db.query(Property.id).filter(Property.id == target_id).first() is not None

    def get(self, target_id: str) -> Property | None:
        return self.db.query(Property).filter(Property.id == target_id).one_or_none()

    def owner_contact(self, target_id: str) -> dict | None:
        """Landlord contact for a property: {id, phone, fullName}."""
        row = (
            self.db.query(User.id, User.phone, User.full_name)
            .join(Property, Property.owner_id == User.id)
            .filter(Property.id == target_id)
            .first()
        )
        if row is None:
            return None
        return {"id": row[0], "phone": row[1], "fullName": row[2]}
