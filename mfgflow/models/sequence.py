"""
Document Sequence - per-period counters for human-readable numbers
"""
from sqlalchemy import Column, String, Integer, UniqueConstraint

from mfgflow.core import Base
from .base import IntegerIDMixin


class DocumentSequence(Base, IntegerIDMixin):
    __tablename__ = "document_sequences"
    __table_args__ = (UniqueConstraint("prefix", "period", name="uq_document_sequence_period"),)
    
    prefix = Column(String(10), nullable=False)  # MO
    period = Column(String(6), nullable=False)  # YYYYMM
    last_value = Column(Integer, default=0, nullable=False)
