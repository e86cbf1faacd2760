"""
Document numbering for manufacturing orders: MO<YYYY><MM><NNNN>
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from datetime import datetime
from typing import Optional
import logging

from mfgflow.core.config import settings
from mfgflow.models import DocumentSequence, ManufacturingOrder

logger = logging.getLogger(__name__)


class SequenceService:

    MO_PREFIX = "MO"

    @staticmethod
    def next_value(db: Session, prefix: str, period: str) -> int:
        """
        Increment the (prefix, period) counter inside the database and return
        the new value. Not committed; the caller's commit publishes it.
        """
        seq = db.query(DocumentSequence)\
            .filter(DocumentSequence.prefix == prefix, DocumentSequence.period == period)\
            .first()
        if not seq:
            seq = DocumentSequence(prefix=prefix, period=period, last_value=0)
            db.add(seq)
            db.flush()

        db.query(DocumentSequence).filter(DocumentSequence.id == seq.id).update(
            {DocumentSequence.last_value: DocumentSequence.last_value + 1},
            synchronize_session=False
        )
        return db.query(DocumentSequence.last_value)\
            .filter(DocumentSequence.id == seq.id)\
            .scalar()

    @staticmethod
    def next_mo_number(db: Session, now: Optional[datetime] = None, strategy: Optional[str] = None) -> str:
        now = now or datetime.now()
        strategy = strategy or settings.MO_NUMBER_STRATEGY
        period = now.strftime("%Y%m")

        if strategy == "count":
            # COUNT(*) + 1 over all MOs; can collide after deletes
            value = (db.query(func.count(ManufacturingOrder.id)).scalar() or 0) + 1
        else:
            value = SequenceService.next_value(db, SequenceService.MO_PREFIX, period)

        mo_number = f"{SequenceService.MO_PREFIX}{period}{value:04d}"
        logger.debug(f"Issued {mo_number} ({strategy})")
        return mo_number
