"""
GDPR Repository - consent records, data requests, retention and privacy policies
"""

from typing import Optional, List
from uuid import UUID
from sqlalchemy.orm import Session

from repositories.base import TenantRepository, BaseRepository
from domain.enums import ConsentType
from domain.models import (
    ConsentRecord,
    DataExportRequest,
    DataRetentionPolicy,
    PrivacyPolicyVersion,
)


class ConsentRepository(TenantRepository[ConsentRecord]):
    def __init__(self, db: Session):
        super().__init__(db, ConsentRecord)

    def list_for_client(self, client_id: UUID) -> List[ConsentRecord]:
        return (
            self.db.query(ConsentRecord)
            .filter(ConsentRecord.client_id == client_id)
            .order_by(ConsentRecord.created_at.desc())
            .all()
        )

    def get_for_client_and_type(
        self, client_id: UUID, consent_type: ConsentType
    ) -> Optional[ConsentRecord]:
        return (
            self.db.query(ConsentRecord)
            .filter(
                ConsentRecord.client_id == client_id,
                ConsentRecord.consent_type == consent_type,
            )
            .first()
        )

    def list_for_dietitian(self, dietitian_id: UUID) -> List[ConsentRecord]:
        return (
            self.query_for_dietitian(dietitian_id)
            .order_by(ConsentRecord.created_at.desc())
            .all()
        )


class DataRequestRepository(TenantRepository[DataExportRequest]):
    def __init__(self, db: Session):
        super().__init__(db, DataExportRequest)

    def list_for_dietitian(self, dietitian_id: UUID) -> List[DataExportRequest]:
        return (
            self.query_for_dietitian(dietitian_id)
            .order_by(DataExportRequest.requested_at.desc())
            .all()
        )


class RetentionPolicyRepository(TenantRepository[DataRetentionPolicy]):
    def __init__(self, db: Session):
        super().__init__(db, DataRetentionPolicy)

    def list_for_dietitian(self, dietitian_id: UUID) -> List[DataRetentionPolicy]:
        return (
            self.query_for_dietitian(dietitian_id)
            .order_by(DataRetentionPolicy.data_category)
            .all()
        )


class PrivacyPolicyRepository(BaseRepository[PrivacyPolicyVersion]):
    def __init__(self, db: Session):
        super().__init__(db, PrivacyPolicyVersion)

    def list_current(self) -> List[PrivacyPolicyVersion]:
        return (
            self.db.query(PrivacyPolicyVersion)
            .filter(PrivacyPolicyVersion.is_current.is_(True))
            .all()
        )
