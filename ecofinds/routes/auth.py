# ecofinds/routes/auth.py
import hashlib
import logging
import secrets
from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy import func
from sqlalchemy.orm import Session

from ecofinds.config import settings
from ecofinds.database import get_db
from ecofinds.models.users import User
from ecofinds.schemas import user as schemas
from ecofinds.utils.audit import write_log, client_ip
from ecofinds.utils.hashing import get_password_hash, verify_password
from ecofinds.utils.tokenJWT import create_access_token, get_current_user

router = APIRouter(prefix="/auth", tags=["Auth"])
logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account exists for this email, a password reset link has been sent"


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _auth_response(user: User) -> dict:
    access_token = create_access_token(data={"sub": user.email, "role": user.role})
    return {"access_token": access_token, "token_type": "bearer", "user": user}


# Register a new user
@router.post("/register", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED)
def register(payload: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    normalized_email = payload.email.strip().lower()

    db_user = db.query(User).filter(func.lower(User.email) == normalized_email).first()
    if db_user:
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": normalized_email, "reason": "Email exists"})
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    new_user = User(
        email=normalized_email,
        password_hash=get_password_hash(payload.password),
        role="user",
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": new_user.email})

    return _auth_response(new_user)


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.AuthResponse)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = db.query(User).filter(User.email == payload.email.strip().lower()).first()

    if not db_user or not db_user.is_active or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    db_user.last_login_at = datetime.utcnow()
    db.commit()
    db.refresh(db_user)

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return _auth_response(db_user)


@router.post("/logout", response_model=schemas.MessageResponse)
def logout(request: Request, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards its copy
    write_log(db, user_id=current_user.id, action="LOGOUT", resource="auth",
              status="SUCCESS", ip=client_ip(request))
    return {"detail": "Logged out"}


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post("/forgot-password", response_model=schemas.MessageResponse)
def forgot_password(payload: schemas.ForgotPasswordRequest, request: Request, db: Session = Depends(get_db)):
    email = payload.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()

    # Same answer whether or not the account exists
    if user and user.is_active:
        token = secrets.token_hex(20)
        user.reset_token_hash = _hash_token(token)
        user.reset_token_expires_at = datetime.utcnow() + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
        db.commit()
        # TODO: hand the token to an email provider once one is configured
        logger.info("Password reset requested for user %s", user.id)
        write_log(db, user_id=user.id, action="FORGOT_PASSWORD", resource="auth",
                  status="SUCCESS", ip=client_ip(request))

    return {"detail": FORGOT_PASSWORD_MESSAGE}


@router.post("/reset-password", response_model=schemas.MessageResponse)
def reset_password(payload: schemas.ResetPasswordRequest, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.reset_token_hash == _hash_token(payload.token)).first()

    if not user or not user.reset_token_expires_at or user.reset_token_expires_at < datetime.utcnow():
        raise HTTPException(status_code=400, detail="Invalid or expired reset token")

    user.password_hash = get_password_hash(payload.password)
    user.reset_token_hash = None
    user.reset_token_expires_at = None
    db.commit()

    write_log(db, user_id=user.id, action="RESET_PASSWORD", resource="auth",
              status="SUCCESS", ip=client_ip(request))
    return {"detail": "Password has been reset"}
