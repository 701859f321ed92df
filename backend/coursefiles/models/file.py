from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, BigInteger, func
from sqlalchemy.orm import relationship

from coursefiles.core.database import Base


class File(Base):
    __tablename__ = "files"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    file_type = Column(String(50), nullable=False)
    file_name = Column(String(255), nullable=True)
    blob_url = Column(String(1000), nullable=True)
    blob_container = Column(String(255), nullable=True)
    blob_path = Column(String(500), nullable=True, unique=True)
    file_size = Column(BigInteger, nullable=True)
    content_type = Column(String(100), nullable=True)
    module_id = Column(Integer, ForeignKey("modules.id", ondelete="RESTRICT"), nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)
    openai_file_id = Column(String(255), nullable=True)
    anthropic_file_id = Column(String(255), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    module = relationship("Module", back_populates="files", lazy="raise")
