from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from directrent.api.deps import get_current_principal
from directrent.db.session import get_db
from directrent.domain.enums import Unbounded
from directrent.identity.models import Principal
from directrent.schemas.unlocks import (
    OwnerOut,
    UnlockedContactOut,
    UnlockedListOut,
    UnlockIn,
    UnlockOut,
    UnlockStatusOut,
)
from directrent.services.unlocks.models import OwnerContact
from directrent.services.unlocks.service import UnlockEngine


router = APIRouter(prefix="/unlock", tags=["unlock"])


def _units(value: int | Unbounded) -> int | str:
    return value.value if isinstance(value, Unbounded) else value


def _owner_out(owner: OwnerContact | None) -> OwnerOut | None:
    if owner is None:
        return None
    return OwnerOut(id=owner.id, phone=owner.phone, full_name=owner.full_name)


@router.post("", response_model=UnlockOut)
def unlock_contact(
    body: UnlockIn = Body(...),
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> UnlockOut:
    """Unlock a landlord's contact for one property. Repeating the call is free."""
    result = UnlockEngine(db).unlock(principal, body.target_id)
    return UnlockOut(
        status=result.status.value,
        target_id=result.target_id,
        unlocked_at=result.unlocked_at,
        owner=_owner_out(result.owner),
        units_remaining=_units(result.units_remaining),
    )


@router.get("/mine", response_model=UnlockedListOut)
def my_unlocked_contacts(
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> UnlockedListOut:
    contacts = UnlockEngine(db).list_unlocked(principal)
    return UnlockedListOut(
        unlocks=[
            UnlockedContactOut(
                target_id=c.target_id,
                title=c.title,
                city=c.city,
                neighborhood=c.neighborhood,
                unlocked_at=c.unlocked_at,
                owner=_owner_out(c.owner),
            )
            for c in contacts
        ]
    )


@router.get("/status/{target_id}", response_model=UnlockStatusOut)
def unlock_status(
    target_id: str,
    principal: Principal = Depends(get_current_principal),
    db: Session = Depends(get_db),
) -> UnlockStatusOut:
    state = UnlockEngine(db).status(principal, target_id)
    return UnlockStatusOut(
        target_id=state.target_id,
        is_unlocked=state.is_unlocked,
        units_remaining=_units(state.units_remaining),
        subscription_tier=state.subscription_tier.value,
        subscription_active=state.subscription_active,
    )
