from sqlalchemy import JSON, BigInteger, Column, DateTime, Index, String, func

from app.database import Base


class Document(Base):
    """One stored document; ``collection`` partitions events, categories and attendees."""

    __tablename__ = "documents"

    id = Column(String(32), primary_key=True)
    collection = Column(String(64), nullable=False, index=True)
    data = Column(JSON, nullable=False, default=dict)
    # Insertion timestamp in ns; query results come back in this order.
    seq = Column(BigInteger, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), default=func.now())

    __table_args__ = (Index("ix_documents_collection_seq", "collection", "seq"),)
