from fastapi import APIRouter, Depends, Request
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session

from pushgate.api.deps import get_current_email, get_hub, get_session_email, get_token_store, security
from pushgate.core.database import get_db
from pushgate.core.errors import ValidationError
from pushgate.schemas import ApprovalOut, ResolveRequest
from pushgate.services.approval import ApprovalService
from pushgate.services.broadcast import BroadcastHub

router = APIRouter(prefix="/api/approval", tags=["approval"])


@router.post("")
async def resolve_approval(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    session_email: str | None = Depends(get_session_email),
    db: Session = Depends(get_db),
    hub: BroadcastHub = Depends(get_hub),
    token_store=Depends(get_token_store),
):
    """
    Onay sürecini sonuçlandırır: {approvalId, state: approved|rejected}.
    Yetki: Authorization: Bearer <geçici token> ya da süreç sahibinin oturumu.
    """
    try:
        body = ResolveRequest.model_validate(await request.json())
    except (ValueError, PydanticValidationError):
        raise ValidationError("Eksik parametre veya geçersiz durum.")
    bearer = credentials.credentials if credentials else None
    approval = await ApprovalService(db, token_store, hub).resolve(
        body.approval_id, body.state, bearer_token=bearer, session_email=session_email
    )
    return {
        "message": "Onay durumu güncellendi ve webhook çağrıldı.",
        "updatedApproval": ApprovalOut.model_validate(approval).model_dump(by_alias=True, mode="json"),
    }


@router.get("/{approval_id}")
def get_approval(
    approval_id: str,
    email: str = Depends(get_current_email),
    db: Session = Depends(get_db),
    token_store=Depends(get_token_store),
):
    approval = ApprovalService(db, token_store).get_for_user(approval_id, email)
    return ApprovalOut.model_validate(approval).model_dump(by_alias=True, mode="json")
