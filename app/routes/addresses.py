from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import update
from sqlmodel import Session, select

from app.database import get_session
from app.models.address import Address
from app.models.user import User
from app.schemas.address_schemas import AddressCreate, AddressUpdate
from app.utils.token import get_current_user

router = APIRouter()


def _owned_address(session: Session, address_id: int, user_id: int) -> Address:
    address = session.get(Address, address_id)
    if not address or address.user_id != user_id:
        raise HTTPException(404, "Address not found")
    return address


def _unset_other_defaults(session: Session, user_id: int, keep_id: int) -> None:
    session.execute(
        update(Address)
        .where(Address.user_id == user_id, Address.id != keep_id)
        .values(is_default=False)
    )


@router.get("")
def list_addresses(
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    addresses = session.exec(
        select(Address)
        .where(Address.user_id == current_user.id)
        .order_by(Address.is_default.desc(), Address.created_at.desc())
    ).all()

    return {"addresses": addresses}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_address(
    data: AddressCreate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    has_any = session.exec(
        select(Address.id).where(Address.user_id == current_user.id)
    ).first() is not None

    address = Address(user_id=current_user.id, **data.model_dump())
    # the first address is the default one
    if not has_any:
        address.is_default = True

    session.add(address)
    session.flush()

    if address.is_default:
        _unset_other_defaults(session, current_user.id, address.id)

    session.commit()
    session.refresh(address)

    return {"message": "Address saved", "address": address}


@router.put("/{address_id}")
def update_address(
    address_id: int,
    data: AddressUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    address = _owned_address(session, address_id, current_user.id)

    optional_fields = {"label", "address_line2", "postal_code"}
    for field, value in data.model_dump(exclude_unset=True).items():
        # required columns cannot be cleared
        if value is None and field not in optional_fields:
            continue
        setattr(address, field, value)
    address.updated_at = datetime.utcnow()

    session.add(address)
    session.commit()
    session.refresh(address)

    return {"message": "Address updated successfully", "address": address}


@router.post("/{address_id}/default")
def set_default_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    address = _owned_address(session, address_id, current_user.id)

    _unset_other_defaults(session, current_user.id, address.id)
    address.is_default = True
    address.updated_at = datetime.utcnow()

    session.add(address)
    session.commit()
    session.refresh(address)

    return {"message": "Default address updated", "address": address}


@router.delete("/{address_id}")
def delete_address(
    address_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    address = _owned_address(session, address_id, current_user.id)
    was_default = address.is_default

    session.delete(address)
    session.flush()

    if was_default:
        newest = session.exec(
            select(Address)
            .where(Address.user_id == current_user.id)
            .order_by(Address.created_at.desc(), Address.id.desc())
        ).first()
        if newest:
            newest.is_default = True
            session.add(newest)

    session.commit()

    return {"message": "Address deleted successfully"}
