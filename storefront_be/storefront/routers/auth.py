import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from sqlalchemy.exc import IntegrityError

from storefront.database import get_db
from storefront.models.user import User
from storefront.schemas.user import RegisterSchema, LoginSchema, UserOut, AuthOut
from storefront.utils.responses import envelope
from storefront.utils.security import (
    Principal,
    create_access_token,
    get_current_user,
    hash_password,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _auth_payload(user: User, settings) -> AuthOut:
    return AuthOut(token=create_access_token(user, settings), user=UserOut.model_validate(user))


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterSchema, request: Request, db: Session = Depends(get_db)):
    settings = request.app.state.settings
    email = payload.email.lower()
    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=409, detail="Email already exists")

    user = User(
        email=email,
        password=hash_password(payload.password, rounds=settings.BCRYPT_ROUNDS),
        name=payload.name,
        role=payload.role.value,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race against a concurrent registration with the same email
        db.rollback()
        raise HTTPException(status_code=409, detail="Email already exists")
    db.refresh(user)
    logger.info("Registered user %s with role %s", user.id, user.role)
    return envelope("User registered", _auth_payload(user, settings))


@router.post("/login", status_code=status.HTTP_201_CREATED)
def login(credentials: LoginSchema, request: Request, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user or not verify_password(credentials.password, user.password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return envelope("User logged in", _auth_payload(user, request.app.state.settings))


@router.get("/me")
def me(principal: Principal = Depends(get_current_user), db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == principal.id).first()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return envelope("User retrieved successfully", UserOut.model_validate(user))
