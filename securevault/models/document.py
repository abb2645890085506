
import enum
import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Text, Boolean, BigInteger, DateTime, ForeignKey, JSON, Enum
from sqlalchemy.orm import relationship
from securevault.db.session import Base


class DocumentCategory(str, enum.Enum):
    personal = "personal"
    work = "work"
    financial = "financial"
    legal = "legal"
    medical = "medical"
    other = "other"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Document(Base):
    __tablename__ = "documents"
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    file_name = Column(String(500), nullable=False)
    original_name = Column(String(255), nullable=False)
    file_size = Column(BigInteger, nullable=False)
    file_type = Column(String(100), nullable=False)
    mime_type = Column(String(100), nullable=False)
    category = Column(
        Enum(DocumentCategory, name="document_category", native_enum=False, validate_strings=True),
        default=DocumentCategory.personal,
        nullable=False,
        index=True,
    )
    storage_key = Column(String(500), unique=True, nullable=False)
    storage_bucket = Column(String(255), nullable=False)
    storage_region = Column(String(50), nullable=False)
    is_public = Column(Boolean, default=False, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    owner = relationship("User", back_populates="documents")

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == "application/pdf"

    @property
    def formatted_size(self) -> str:
        return format_size(self.file_size)


def format_size(num_bytes: int) -> str:
    if not num_bytes:
        return "0 Bytes"
    units = ["Bytes", "KB", "MB", "GB"]
    value = float(num_bytes)
    i = 0
    while value >= 1024 and i < len(units) - 1:
        value /= 1024
        i += 1
    return f"{round(value, 2):g} {units[i]}"
