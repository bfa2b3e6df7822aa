"""
Dietitian authentication and profile management.

Dietitians sign in with the hosted auth provider; the API only verifies the
provider's HS256 access token and maps its subject to a ``dietitians`` row.
"""

from datetime import timedelta
from typing import Any, Dict, Optional
import logging
import uuid

import jwt
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import ConflictError, NotFoundError, UnauthorizedError
from domain.enums import SubscriptionStatus
from domain.models import Dietitian, utcnow
from repositories import DietitianRepository

logger = logging.getLogger("nutriflow.services.dietitian")


class DietitianService:
    @staticmethod
    def decode_access_token(token: str) -> Dict[str, Any]:
        """Verify a hosted-auth access token and return its claims.

        Raises:
            UnauthorizedError: token missing, forged, expired or for another audience
        """
        if not settings.supabase_jwt_secret:
            logger.error("SUPABASE_JWT_SECRET is not configured")
            raise UnauthorizedError()
        try:
            return jwt.decode(
                token,
                settings.supabase_jwt_secret,
                algorithms=["HS256"],
                audience=settings.supabase_jwt_audience,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise UnauthorizedError("Session expired", code="TOKEN_EXPIRED")
        except jwt.InvalidTokenError:
            raise UnauthorizedError()

    @staticmethod
    def auth_user_id(claims: Dict[str, Any]) -> uuid.UUID:
        try:
            return uuid.UUID(str(claims["sub"]))
        except (KeyError, ValueError):
            raise UnauthorizedError()

    @staticmethod
    def get_by_claims(db: Session, claims: Dict[str, Any]) -> Dietitian:
        dietitian = DietitianRepository(db).get_by_auth_user_id(
            DietitianService.auth_user_id(claims)
        )
        if not dietitian:
            raise NotFoundError("Dietitian not found")
        return dietitian

    @staticmethod
    def register(
        db: Session,
        claims: Dict[str, Any],
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
    ) -> Dietitian:
        """Create the dietitian profile for a freshly signed-up hosted-auth user.

        New profiles start on the free plan with a trial.
        """
        repo = DietitianRepository(db)
        auth_user_id = DietitianService.auth_user_id(claims)
        if repo.get_by_auth_user_id(auth_user_id):
            raise ConflictError("Dietitian profile already exists")
        email = claims.get("email")
        if not email:
            raise UnauthorizedError("Token has no email claim")
        dietitian = repo.create_dietitian(
            auth_user_id=auth_user_id,
            email=email.lower(),
            first_name=first_name,
            last_name=last_name,
            subscription_status=SubscriptionStatus.TRIALING,
            subscription_plan="free",
            trial_ends_at=utcnow() + timedelta(days=settings.trial_days),
        )
        logger.info(f"Registered dietitian {dietitian.id}")
        return dietitian

    @staticmethod
    def update_profile(db: Session, dietitian: Dietitian, **fields) -> Dietitian:
        for key, value in fields.items():
            if value is not None and key in ("first_name", "last_name"):
                setattr(dietitian, key, value)
        return DietitianRepository(db).update(dietitian)
