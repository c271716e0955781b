from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session, select

from pushgate.core.config import settings
from pushgate.core.database import get_db
from pushgate.core.security import session_email
from pushgate.models import User
from pushgate.services.broadcast import BroadcastHub

security = HTTPBearer(auto_error=False)


def get_session_email(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> str | None:
    """Oturum: önce HttpOnly çerez (EventSource başlık gönderemez), sonra Bearer JWT."""
    email = session_email(request.cookies.get(settings.session_cookie_name))
    if email:
        return email
    if credentials:
        return session_email(credentials.credentials)
    return None


def get_current_email(email: str | None = Depends(get_session_email)) -> str:
    if not email:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Giriş yapmanız gerekiyor.",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return email


def get_current_user(
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
) -> User:
    user = db.exec(select(User).where(User.email == email)).first()
    if not user:
        raise HTTPException(status_code=401, detail="Geçersiz veya süresi dolmuş oturum.")
    return user


def get_hub(request: Request) -> BroadcastHub:
    return request.app.state.hub


def get_token_store(request: Request):
    return request.app.state.token_store
