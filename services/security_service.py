"""
Tracking and revocation of dietitian sessions.

The hosted auth provider puts a ``session_id`` claim in every access token.
The first request carrying a new id records a ``user_sessions`` row; once a
row is revoked, tokens from that session are refused even before they expire.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional
import logging
import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.exceptions import NotFoundError, ServiceValidationError, UnauthorizedError
from domain.models import Dietitian, UserSession, as_utc, utcnow
from domain.schemas import UserSessionResponse
from repositories import UserSessionRepository

logger = logging.getLogger("nutriflow.services.security")
security_logger = logging.getLogger("security")

# last_activity is only rewritten when older than this
ACTIVITY_RESOLUTION = timedelta(minutes=1)
MOBILE_MARKERS = ("mobile", "android", "iphone", "ipad")
REVOKE_ALL = "revoke-all"


def describe_device(user_agent: Optional[str]) -> Dict[str, str]:
    if not user_agent:
        return {"type": "desktop", "name": "Unknown Device"}
    lowered = user_agent.lower()
    kind = "mobile" if any(marker in lowered for marker in MOBILE_MARKERS) else "desktop"
    return {"type": kind, "name": user_agent[:120]}


class SecurityService:
    @staticmethod
    def track_session(
        db: Session,
        dietitian: Dietitian,
        claims: Dict[str, Any],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Optional[UserSession]:
        """
        Record or refresh the session behind an access token.

        Tokens without a ``session_id`` claim are not tracked.

        Raises:
            UnauthorizedError: the session was revoked
        """
        auth_session_id = claims.get("session_id")
        if not auth_session_id:
            return None
        repo = UserSessionRepository(db)
        record = repo.get_by_auth_session(dietitian.id, str(auth_session_id))
        now = utcnow()

        if record is None:
            record = UserSession(
                dietitian_id=dietitian.id,
                auth_session_id=str(auth_session_id),
                device_info=describe_device(user_agent),
                ip_address=ip_address,
                user_agent=user_agent,
                created_at=now,
                last_activity=now,
            )
            try:
                return repo.create(record)
            except IntegrityError:
                # Two first requests raced; the other one recorded it
                db.rollback()
                return repo.get_by_auth_session(dietitian.id, str(auth_session_id))

        if not record.is_active:
            security_logger.warning(
                {
                    "event": "revoked_session_used",
                    "dietitian_id": str(dietitian.id),
                    "session_id": str(record.id),
                    "ip": ip_address,
                }
            )
            raise UnauthorizedError("Session revoked", code="SESSION_REVOKED")

        if now - as_utc(record.last_activity) >= ACTIVITY_RESOLUTION:
            record.last_activity = now
            record.ip_address = ip_address or record.ip_address
            repo.update(record)
        return record

    @staticmethod
    def list_sessions(
        db: Session, dietitian_id: uuid.UUID, current_auth_session_id: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Active sessions, most recently used first."""
        sessions = []
        for record in UserSessionRepository(db).list_active(dietitian_id):
            item = UserSessionResponse.model_validate(record)
            item.is_current = (
                current_auth_session_id is not None
                and record.auth_session_id == str(current_auth_session_id)
            )
            sessions.append(item.model_dump(mode="json"))
        return sessions

    @staticmethod
    def revoke_session(
        db: Session, dietitian_id: uuid.UUID, session_id: uuid.UUID, ip_address: Optional[str] = None
    ) -> UserSession:
        repo = UserSessionRepository(db)
        record = repo.get_for_dietitian(dietitian_id, session_id)
        if not record:
            raise NotFoundError("Session not found")
        record.is_active = False
        record.ended_at = utcnow()
        repo.update(record)
        security_logger.info(
            {
                "event": "session_revoked",
                "dietitian_id": str(dietitian_id),
                "session_id": str(session_id),
                "device_info": record.device_info,
                "ip": ip_address,
            }
        )
        return record

    @staticmethod
    def perform_action(
        db: Session,
        dietitian_id: uuid.UUID,
        action: Optional[str],
        current_auth_session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Dict[str, Any]:
        """``revoke-all`` ends every other active session of the dietitian."""
        if action != REVOKE_ALL:
            raise ServiceValidationError("Invalid action")
        repo = UserSessionRepository(db)
        current = None
        if current_auth_session_id:
            current = repo.get_by_auth_session(dietitian_id, str(current_auth_session_id))
        revoked = repo.revoke_all_except(dietitian_id, current.id if current else None)
        security_logger.info(
            {
                "event": "sessions_revoked",
                "dietitian_id": str(dietitian_id),
                "revoked": revoked,
                "ip": ip_address,
            }
        )
        logger.info(f"Revoked {revoked} sessions for dietitian {dietitian_id}")
        return {"success": True, "revoked": revoked}
