"""
Client portal authentication.

Portal clients do not have hosted-auth users. They log in with an email and
password stored on ``client_accounts`` and receive a short-lived HS256 token
signed with ``CLIENT_AUTH_SECRET``. Every portal request re-validates the
token *and* checks that the account is still active, so deactivating an
account revokes outstanding tokens immediately.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple
import logging
import secrets
import uuid

import bcrypt
import jwt
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config import settings
from app.exceptions import (
    NotFoundError,
    ServiceValidationError,
    UnauthorizedError,
)
from domain.models import ClientAccount, utcnow
from repositories import ClientAccountRepository, ClientRepository

logger = logging.getLogger("nutriflow.services.client_auth")
security_logger = logging.getLogger("security")

TOKEN_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 10
MIN_PASSWORD_LENGTH = 6
INVALID_CREDENTIALS = "Email ou mot de passe incorrect"


def _secret() -> str:
    if not settings.client_auth_secret:
        raise RuntimeError(
            "CLIENT_AUTH_SECRET must be configured to issue or verify client tokens"
        )
    return settings.client_auth_secret


# ============================================================================
# Passwords
# ============================================================================


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS)).decode(
        "utf-8"
    )


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def validate_password(password: Optional[str]) -> Tuple[bool, str]:
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return False, "Le mot de passe doit contenir au moins 6 caractères"
    return True, ""


def generate_temporary_password(client_name: str) -> str:
    """First name (lower-cased) followed by four random digits."""
    parts = (client_name or "").split()
    first_name = parts[0].lower() if parts else "client"
    return f"{first_name}{1000 + secrets.randbelow(9000)}"


def format_client_account_email(client_email: Optional[str], client_name: str) -> str:
    if client_email and "@" in client_email:
        return client_email.lower()
    slug = ".".join((client_name or "client").lower().split())
    return f"{slug}@client.nutriflow.local"


# ============================================================================
# Tokens
# ============================================================================


def create_client_token(
    client_id: uuid.UUID, email: str, now: Optional[datetime] = None
) -> str:
    """Issue a signed portal token valid for ``client_token_ttl_hours``."""
    issued_at = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(client_id),
        "email": email,
        "iat": issued_at,
        "exp": issued_at + timedelta(hours=settings.client_token_ttl_hours),
        "jti": uuid.uuid4().hex,
        "typ": "client",
    }
    return jwt.encode(payload, _secret(), algorithm=TOKEN_ALGORITHM)


def decode_client_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the verified claims, or None for any malformed/forged/expired token."""
    try:
        claims = jwt.decode(
            token,
            _secret(),
            algorithms=[TOKEN_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Rejected expired client token")
        return None
    except jwt.InvalidTokenError:
        return None
    if claims.get("typ") != "client":
        return None
    return claims


def validate_client_session(db: Session, token: str) -> Optional[uuid.UUID]:
    """
    Resolve a portal token to a client id.

    Returns None when the token does not verify, is expired, or no active
    account exists for the client. Database failures also yield None.
    """
    claims = decode_client_token(token)
    if not claims:
        return None
    try:
        client_id = uuid.UUID(str(claims["sub"]))
    except (ValueError, TypeError):
        return None
    try:
        account = ClientAccountRepository(db).get_active_by_client_id(client_id)
    except SQLAlchemyError:
        logger.exception("Client session lookup failed")
        db.rollback()
        return None
    return client_id if account else None


# ============================================================================
# Service
# ============================================================================


class ClientAuthService:
    @staticmethod
    def login(db: Session, email: Optional[str], password: Optional[str]) -> Dict[str, Any]:
        """
        Authenticate a portal client.

        Returns:
            Dict with ``token`` and ``client`` ({id, name, email, account_id})

        Raises:
            ServiceValidationError: email or password missing
            UnauthorizedError: unknown/inactive account or wrong password
        """
        if not email or not password:
            raise ServiceValidationError("Email et mot de passe requis")

        normalized = email.strip().lower()
        account_repo = ClientAccountRepository(db)
        account = account_repo.get_active_by_email(normalized)
        if account is None or not verify_password(password, account.password_hash):
            security_logger.warning(
                {"event": "client_login_failed", "email": normalized}
            )
            raise UnauthorizedError(INVALID_CREDENTIALS, code="INVALID_CREDENTIALS")

        account.last_login = utcnow()
        account_repo.update(account)

        client = account.client
        logger.info(f"Client {account.client_id} logged in")
        return {
            "token": create_client_token(account.client_id, account.email),
            "client": {
                "id": str(account.client_id),
                "name": client.name if client else None,
                "email": account.email,
                "account_id": str(account.id),
            },
        }

    @staticmethod
    def create_portal_account(
        db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID
    ) -> Tuple[ClientAccount, str]:
        """
        Create the portal account for a client, or reset its password and
        reactivate it when one exists. Returns the account and the plain
        temporary password (shown to the dietitian once).
        """
        client = ClientRepository(db).get_for_dietitian(dietitian_id, client_id)
        if not client:
            raise NotFoundError(f"Client not found: {client_id}")

        temporary_password = generate_temporary_password(client.name)
        password_hash = hash_password(temporary_password)
        account_repo = ClientAccountRepository(db)

        account = account_repo.get_by_client_id(client_id)
        if account:
            account.password_hash = password_hash
            account.is_active = True
            account = account_repo.update(account)
            logger.info(f"Reset portal account for client {client_id}")
        else:
            email = format_client_account_email(client.email, client.name)
            account = account_repo.create_account(client_id, email, password_hash)
            logger.info(f"Created portal account for client {client_id}")
        return account, temporary_password

    @staticmethod
    def deactivate_portal_account(
        db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID
    ) -> ClientAccount:
        client = ClientRepository(db).get_for_dietitian(dietitian_id, client_id)
        if not client:
            raise NotFoundError(f"Client not found: {client_id}")
        account_repo = ClientAccountRepository(db)
        account = account_repo.get_by_client_id(client_id)
        if not account:
            raise NotFoundError("Client has no portal account")
        account.is_active = False
        return account_repo.update(account)
