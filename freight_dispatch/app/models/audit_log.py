"""
Audit Log Database Model.

One row per committed change to a load: creation, status moves, assignments,
brokering, invoice attachment and draft approval.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from freight_dispatch.app.db.session import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    load_id = Column(Integer, index=True, nullable=True)

    action = Column(String(50), nullable=False, index=True)

    # Token claims of the caller; all None for system actions
    actor_id = Column(Integer, index=True, nullable=True)
    actor_username = Column(String(100), nullable=True)
    actor_role = Column(String(20), nullable=True)

    meta_data = Column(JSON, nullable=True)

    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, load={self.load_id}, action='{self.action}')>"
