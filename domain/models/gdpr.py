"""
GDPR bookkeeping models: consents, data requests, retention and privacy policy.
"""

from sqlalchemy import (
    Column,
    Text,
    DateTime,
    Date,
    ForeignKey,
    Integer,
    Boolean,
    JSON,
    Uuid,
    UniqueConstraint,
)
import uuid

from domain.models.database import Base, utcnow, enum_column
from domain.enums import ConsentType, DataRequestType, DataRequestStatus


class ConsentRecord(Base):
    __tablename__ = "consent_records"
    __table_args__ = (UniqueConstraint("client_id", "consent_type"),)

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    consent_type = Column(enum_column(ConsentType), nullable=False)
    granted = Column(Boolean, nullable=False, default=False)
    granted_at = Column(DateTime(timezone=True))
    withdrawn_at = Column(DateTime(timezone=True))
    version = Column(Text, nullable=False, default="1.0")
    purpose = Column(Text)
    legal_basis = Column(Text, nullable=False, default="consent")
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class DataExportRequest(Base):
    """Export, portability or deletion request (Art. 15/17/20)"""

    __tablename__ = "data_export_requests"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    client_id = Column(
        Uuid, ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True
    )
    requested_by = Column(Text, nullable=False, default="client")
    request_type = Column(
        enum_column(DataRequestType), nullable=False, default=DataRequestType.EXPORT
    )
    status = Column(
        enum_column(DataRequestStatus), nullable=False, default=DataRequestStatus.PENDING
    )
    export_data = Column(JSON)
    requested_at = Column(DateTime(timezone=True), default=utcnow)
    completed_at = Column(DateTime(timezone=True))
    expires_at = Column(DateTime(timezone=True))


class DataRetentionPolicy(Base):
    __tablename__ = "data_retention_policies"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    dietitian_id = Column(
        Uuid, ForeignKey("dietitians.id", ondelete="CASCADE"), nullable=False, index=True
    )
    data_category = Column(Text, nullable=False)
    retention_period_years = Column(Integer, nullable=False, default=5)
    auto_delete = Column(Boolean, nullable=False, default=False)
    description = Column(Text)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)


class PrivacyPolicyVersion(Base):
    __tablename__ = "privacy_policy_versions"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    version = Column(Text, nullable=False, unique=True)
    content = Column(Text, nullable=False)
    effective_date = Column(Date)
    is_current = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
