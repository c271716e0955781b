from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from sqlmodel import Session, select

from pushgate.api.deps import get_current_user
from pushgate.core.config import settings
from pushgate.core.database import get_db
from pushgate.core.rate_limit import DEFAULT_LIMIT, REGISTER_LIMIT, limiter
from pushgate.core.security import SESSION_EXPIRE_MINUTES, create_session_token, hash_password, verify_password
from pushgate.models import User
from pushgate.schemas import Token, UserResponse

router = APIRouter(prefix="/auth", tags=["auth"])


def _set_session_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.session_cookie_name,
        token,
        max_age=SESSION_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite="lax",
        secure=settings.environment == "production",
    )


@router.post("/register", response_model=UserResponse)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    db: Session = Depends(get_db),
):
    form = await request.form()
    email = (form.get("email") or "").strip().lower()
    password = (form.get("password") or "")
    full_name = (form.get("full_name") or "").strip()
    if not email or "@" not in email:
        raise HTTPException(status_code=422, detail="Geçerli bir e-posta girin.")
    if not password or len(password) < 6:
        raise HTTPException(status_code=422, detail="Şifre en az 6 karakter olmalı.")
    if db.exec(select(User).where(User.email == email)).first():
        raise HTTPException(status_code=400, detail="Bu e-posta adresi zaten kayıtlı.")
    user = User(email=email, hashed_password=hash_password(password), full_name=full_name)
    db.add(user)
    db.commit()
    db.refresh(user)
    return UserResponse(id=user.id or 0, email=user.email, full_name=user.full_name)


@router.post("/login", response_model=Token)
@limiter.limit(DEFAULT_LIMIT)
async def login(
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    form = await request.form()
    email = (form.get("email") or "").strip().lower()
    password = (form.get("password") or "")
    if not email:
        raise HTTPException(status_code=422, detail="E-posta girin.")
    if not password:
        raise HTTPException(status_code=422, detail="Şifre girin.")
    user = db.exec(select(User).where(User.email == email)).first()
    if not user or not verify_password(password, user.hashed_password):
        raise HTTPException(status_code=401, detail="E-posta veya şifre hatalı.")
    token = create_session_token(user.email)
    user.last_login_at = datetime.utcnow()
    db.add(user)
    db.commit()
    _set_session_cookie(response, token)
    return Token(access_token=token)


@router.post("/logout")
def logout(response: Response):
    response.delete_cookie(settings.session_cookie_name)
    return {"ok": True}


@router.get("/me", response_model=UserResponse)
def me(user: User = Depends(get_current_user)):
    return UserResponse(id=user.id or 0, email=user.email, full_name=user.full_name or "")
