"""Invitation controllers.

Addressed invitations are accepted or rejected by id; open ones can only
be used through their code.

Endpoints implemented:
- POST, GET /api/invitations
- GET /api/invitations/count
- GET /api/invitations/sent
- POST /api/invitations/redeem
- POST /api/invitations/{invitation_id}/accept
- POST /api/invitations/{invitation_id}/reject
"""

from fastapi import APIRouter, Depends
from sqlmodel import Session

from .. import models
from ..auth import get_current_user
from ..database import get_session
from ..schemas import InvitationIn, RedeemIn
from ..services import InvitationService

router = APIRouter(prefix="/api/invitations", tags=["invitations"])


@router.post("", status_code=201)
def create_invitation(payload: InvitationIn, user: models.User = Depends(get_current_user),
                      session: Session = Depends(get_session)):
    return InvitationService(session, user).create(payload.course_id, payload.name, payload.email)


@router.get("")
def pending_invitations(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return InvitationService(session, user).pending()


@router.get("/count")
def pending_count(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return InvitationService(session, user).count()


@router.get("/sent")
def sent_invitations(user: models.User = Depends(get_current_user), session: Session = Depends(get_session)):
    return InvitationService(session, user).sent()


@router.post("/redeem")
def redeem_code(payload: RedeemIn, user: models.User = Depends(get_current_user),
                session: Session = Depends(get_session)):
    return InvitationService(session, user).redeem(payload.code)


@router.post("/{invitation_id}/accept")
def accept_invitation(invitation_id: int, user: models.User = Depends(get_current_user),
                      session: Session = Depends(get_session)):
    return InvitationService(session, user).accept(invitation_id)


@router.post("/{invitation_id}/reject")
def reject_invitation(invitation_id: int, user: models.User = Depends(get_current_user),
                      session: Session = Depends(get_session)):
    return InvitationService(session, user).reject(invitation_id)
