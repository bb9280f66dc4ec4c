# ecofinds/routes/users.py
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ecofinds.database import get_db
from ecofinds.models.users import User
from ecofinds.models.product import Product
from ecofinds.schemas.user import UserResponse, PublicProfile, ProfileUpdate
from ecofinds.utils.audit import write_log, client_ip
from ecofinds.utils.tokenJWT import get_current_user

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("/profile", response_model=UserResponse)
def get_profile(current_user: User = Depends(get_current_user)):
    return current_user


@router.put("/profile", response_model=UserResponse)
def update_profile(
    payload: ProfileUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    for key, value in changes.items():
        setattr(current_user, key, value)

    db.commit()
    db.refresh(current_user)

    write_log(db, user_id=current_user.id, action="PROFILE_UPDATE", resource="users",
              status="SUCCESS", ip=client_ip(request), meta={"fields": sorted(changes)})
    return current_user


@router.get("/{user_id}", response_model=PublicProfile)
def get_public_profile(user_id: int, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id, User.is_active == True).first()  # noqa: E712
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    active = db.query(Product).filter(Product.seller_id == user.id, Product.status == "active").count()
    profile = PublicProfile.model_validate(user)
    profile.active_listings = active
    return profile
