"""
GDPR bookkeeping for both sides of the platform.

Clients manage their own consents and file export/deletion requests from the
portal; dietitians review those records, compile exports, anonymize clients
and maintain retention policies.
"""

from datetime import timedelta
from typing import Any, Dict, List, Optional
import logging
import uuid

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from adapters import storage_adapter
from app.exceptions import NotFoundError, ServiceValidationError
from domain.enums import (
    ClientStatus,
    ConsentType,
    DataRequestStatus,
    DataRequestType,
)
from domain.models import ConsentRecord, DataExportRequest, as_utc, utcnow
from domain.schemas import (
    AppointmentResponse,
    ClientResponse,
    ConsentItem,
    ConsentRecordResponse,
    DataRequestResponse,
    DocumentResponse,
    MealPlanResponse,
    MessageResponse,
    PrivacyPolicyResponse,
    RetentionPolicyResponse,
    RetentionPolicyUpdate,
    WeightEntryResponse,
)
from repositories import (
    AppointmentRepository,
    ClientAccountRepository,
    ClientRepository,
    ConsentRepository,
    DataRequestRepository,
    DocumentRepository,
    MealPlanRepository,
    MessageRepository,
    PrivacyPolicyRepository,
    RetentionPolicyRepository,
    WeightEntryRepository,
)

logger = logging.getLogger("nutriflow.services.gdpr")

EXPORT_TTL_DAYS = 7
CONSENT_VERSION = "1.0"

CONSENT_PURPOSES = {
    ConsentType.DATA_PROCESSING.value: "Traitement des données personnelles pour la gestion du dossier nutritionnel",
    ConsentType.HEALTH_DATA.value: "Traitement des données de santé sensibles pour le suivi nutritionnel",
    ConsentType.PHOTOS.value: "Utilisation de photos corporelles pour le suivi de progression",
    ConsentType.MARKETING.value: "Communications marketing et newsletters",
    ConsentType.DATA_SHARING.value: "Partage de données avec des tiers (laboratoires, professionnels de santé)",
}
DEFAULT_PURPOSE = "Consentement pour traitement de données"

ANONYMIZED_NAME = "Client anonymisé"


def consent_purpose(consent_type) -> str:
    if isinstance(consent_type, ConsentType):
        consent_type = consent_type.value
    return CONSENT_PURPOSES.get(consent_type, DEFAULT_PURPOSE)


def parse_consent_type(value) -> Optional[ConsentType]:
    try:
        return ConsentType(value)
    except ValueError:
        return None


def _dump(schema, rows) -> List[Dict[str, Any]]:
    return [schema.model_validate(row).model_dump(mode="json") for row in rows]


class GdprService:
    # ------------------------------------------------------------------
    # Consents
    # ------------------------------------------------------------------

    @staticmethod
    def list_client_consents(db: Session, client_id: uuid.UUID) -> List[ConsentRecord]:
        return ConsentRepository(db).list_for_client(client_id)

    @staticmethod
    def set_consent(
        db: Session,
        dietitian_id: uuid.UUID,
        client_id: uuid.UUID,
        consent_type: str,
        granted: bool,
        version: Optional[str] = None,
        purpose: Optional[str] = None,
        legal_basis: Optional[str] = None,
    ) -> ConsentRecord:
        """
        Upsert one consent; grant and withdrawal timestamps follow ``granted``.

        New records are flushed right away so a later call in the same
        transaction finds them instead of inserting a duplicate.
        """
        kind = parse_consent_type(consent_type)
        if kind is None:
            raise ServiceValidationError("Type de consentement invalide")
        repo = ConsentRepository(db)
        now = utcnow()
        record = repo.get_for_client_and_type(client_id, kind)
        if record is None:
            record = ConsentRecord(
                dietitian_id=dietitian_id,
                client_id=client_id,
                consent_type=kind,
                version=version or CONSENT_VERSION,
                purpose=purpose or consent_purpose(kind),
                legal_basis=legal_basis or "consent",
            )
            db.add(record)
            db.flush()
        elif version or purpose or legal_basis:
            record.version = version or record.version
            record.purpose = purpose or record.purpose
            record.legal_basis = legal_basis or record.legal_basis
        record.granted = granted
        record.granted_at = now if granted else None
        record.withdrawn_at = None if granted else now
        return record

    @staticmethod
    def update_client_consents(
        db: Session, client_id: uuid.UUID, consents: List[ConsentItem]
    ) -> List[ConsentRecord]:
        """
        Apply portal consent choices in order, so the last entry for a type
        wins. Entries without a known type or a boolean are skipped.
        """
        client = ClientRepository(db).get_by_id(client_id)
        if not client:
            raise NotFoundError("Client non trouvé")

        results = {}
        try:
            for item in consents:
                kind = parse_consent_type(item.consent_type)
                if kind is None or not isinstance(item.granted, bool):
                    continue
                results[kind] = GdprService.set_consent(
                    db, client.dietitian_id, client_id, kind, item.granted
                )
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Failed to update consents for client {client_id}")
            raise
        for record in results.values():
            db.refresh(record)
        return list(results.values())

    # ------------------------------------------------------------------
    # Data requests
    # ------------------------------------------------------------------

    @staticmethod
    def create_client_request(
        db: Session, client_id: uuid.UUID, request_type: Optional[str], default_type: DataRequestType
    ) -> DataExportRequest:
        client = ClientRepository(db).get_by_id(client_id)
        if not client:
            raise NotFoundError("Compte client non trouvé")
        try:
            kind = DataRequestType(request_type) if request_type else default_type
        except ValueError:
            raise ServiceValidationError("Type de demande invalide")

        request = DataExportRequest(
            dietitian_id=client.dietitian_id,
            client_id=client_id,
            requested_by="client",
            request_type=kind,
            status=DataRequestStatus.PENDING,
        )
        if kind != DataRequestType.DELETION:
            request.expires_at = utcnow() + timedelta(days=EXPORT_TTL_DAYS)
        request = DataRequestRepository(db).create(request)
        logger.info(f"Client {client_id} filed a {kind.value} request {request.id}")
        return request

    @staticmethod
    def compile_client_data(db: Session, client_id: uuid.UUID) -> Dict[str, Any]:
        client = ClientRepository(db).get_by_id(client_id)
        if not client:
            raise NotFoundError(f"Client not found: {client_id}")
        return {
            "client": ClientResponse.model_validate(client).model_dump(mode="json"),
            "weight_history": _dump(
                WeightEntryResponse, WeightEntryRepository(db).list_for_client(client_id)
            ),
            "meal_plans": _dump(MealPlanResponse, MealPlanRepository(db).list_for_client(client_id)),
            "appointments": _dump(
                AppointmentResponse, AppointmentRepository(db).list_for_client(client_id)
            ),
            "messages": _dump(MessageResponse, MessageRepository(db).list_for_client(client_id)),
            "documents": _dump(DocumentResponse, DocumentRepository(db).list_for_client(client_id)),
            "consents": _dump(ConsentRecordResponse, ConsentRepository(db).list_for_client(client_id)),
            "exported_at": utcnow().isoformat(),
        }

    @staticmethod
    def create_export(
        db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID, request_type: Optional[str] = None
    ) -> DataExportRequest:
        """Compile the client's data into a completed export request."""
        if not ClientRepository(db).get_for_dietitian(dietitian_id, client_id):
            raise NotFoundError(f"Client not found: {client_id}")
        try:
            kind = DataRequestType(request_type) if request_type else DataRequestType.EXPORT
        except ValueError:
            raise ServiceValidationError("Type de demande invalide")
        now = utcnow()
        request = DataExportRequest(
            dietitian_id=dietitian_id,
            client_id=client_id,
            requested_by="dietitian",
            request_type=kind,
            status=DataRequestStatus.COMPLETED,
            export_data=GdprService.compile_client_data(db, client_id),
            requested_at=now,
            completed_at=now,
            expires_at=now + timedelta(days=EXPORT_TTL_DAYS),
        )
        return DataRequestRepository(db).create(request)

    # ------------------------------------------------------------------
    # Anonymization
    # ------------------------------------------------------------------

    @staticmethod
    def anonymize_client(
        db: Session, dietitian_id: uuid.UUID, client_id: uuid.UUID, anonymization_type: str = "full"
    ) -> Dict[str, Any]:
        """
        Scrub a client's identity. ``full`` also erases weight history,
        messages and documents (including stored files).
        """
        if anonymization_type not in ("full", "partial"):
            raise ServiceValidationError("Type d'anonymisation invalide")
        client = ClientRepository(db).get_for_dietitian(dietitian_id, client_id)
        if not client:
            raise NotFoundError(f"Client not found: {client_id}")

        removed_files = []
        try:
            client.name = ANONYMIZED_NAME
            client.email = None
            client.phone = None
            client.notes = None
            client.age = None
            client.status = ClientStatus.ANONYMIZED
            client.anonymized_at = utcnow()

            account = ClientAccountRepository(db).get_by_client_id(client_id)
            if account is not None:
                db.delete(account)

            deleted = {}
            if anonymization_type == "full":
                deleted["weight_entries"] = WeightEntryRepository(db).delete_for_client(client_id)
                deleted["messages"] = MessageRepository(db).delete_for_client(client_id)
                documents = DocumentRepository(db).list_for_client(client_id)
                for document in documents:
                    removed_files.append(document.file_path)
                    db.delete(document)
                deleted["documents"] = len(documents)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.exception(f"Anonymization of client {client_id} failed")
            raise

        for path in removed_files:
            storage_adapter.remove(path)
        logger.info(f"Client {client_id} anonymized ({anonymization_type})")
        return {
            "client_id": str(client_id),
            "anonymization_type": anonymization_type,
            "anonymized_at": as_utc(client.anonymized_at).isoformat(),
            "deleted": deleted,
        }

    # ------------------------------------------------------------------
    # Dietitian views and actions
    # ------------------------------------------------------------------

    @staticmethod
    def list_records(db: Session, dietitian_id: uuid.UUID, record_type: Optional[str]) -> List[Dict[str, Any]]:
        if record_type == "consent":
            return _dump(ConsentRecordResponse, ConsentRepository(db).list_for_dietitian(dietitian_id))
        if record_type == "exports":
            return _dump(DataRequestResponse, DataRequestRepository(db).list_for_dietitian(dietitian_id))
        if record_type == "retention":
            return _dump(
                RetentionPolicyResponse, RetentionPolicyRepository(db).list_for_dietitian(dietitian_id)
            )
        if record_type == "privacy":
            return _dump(PrivacyPolicyResponse, PrivacyPolicyRepository(db).list_current())
        raise ServiceValidationError("Type non spécifié")

    @staticmethod
    def update_retention_policy(db: Session, dietitian_id: uuid.UUID, data: Dict[str, Any]) -> None:
        try:
            update = RetentionPolicyUpdate.model_validate(data)
        except ValidationError as exc:
            raise ServiceValidationError(
                "Politique de conservation invalide",
                details={
                    ".".join(str(part) for part in error["loc"]): error["msg"]
                    for error in exc.errors()
                },
            )
        repo = RetentionPolicyRepository(db)
        policy = repo.get_for_dietitian(dietitian_id, update.policy_id)
        if not policy:
            raise NotFoundError("Retention policy not found")
        if update.years is not None:
            policy.retention_period_years = update.years
        if update.auto_delete is not None:
            policy.auto_delete = update.auto_delete
        if "description" in update.model_fields_set:
            policy.description = update.description
        repo.update(policy)

    @staticmethod
    def perform_action(
        db: Session,
        dietitian_id: uuid.UUID,
        action: str,
        client_id: Optional[uuid.UUID],
        data: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Dispatch a dietitian GDPR action; unknown actions are rejected."""
        if action in ("create_export", "anonymize_client", "update_consent") and client_id is None:
            raise ServiceValidationError("Client ID requis")

        if action == "create_export":
            request = GdprService.create_export(db, dietitian_id, client_id, data.get("type"))
            return {
                "success": True,
                "data": DataRequestResponse.model_validate(request).model_dump(mode="json"),
            }
        if action == "anonymize_client":
            result = GdprService.anonymize_client(
                db, dietitian_id, client_id, data.get("type") or "full"
            )
            return {"success": True, "data": result}
        if action == "update_consent":
            if not ClientRepository(db).get_for_dietitian(dietitian_id, client_id):
                raise NotFoundError(f"Client not found: {client_id}")
            if parse_consent_type(data.get("consentType")) is None or not isinstance(
                data.get("granted"), bool
            ):
                raise ServiceValidationError("Données de consentement invalides")
            GdprService.set_consent(
                db,
                dietitian_id,
                client_id,
                data["consentType"],
                data["granted"],
                version=data.get("version"),
                purpose=data.get("purpose"),
                legal_basis=data.get("legalBasis"),
            )
            db.commit()
            return {"success": True}
        if action == "update_retention_policy":
            GdprService.update_retention_policy(db, dietitian_id, data)
            return {"success": True}
        raise ServiceValidationError("Action non reconnue")
