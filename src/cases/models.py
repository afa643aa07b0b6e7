from sqlalchemy import Column, String, Boolean
from src.database import Base
from src.shared.models import RecordMixin


class Case(Base, RecordMixin):
    """A case workspace. Owns its documents, events and audit trail."""
    __tablename__ = "cases"

    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    is_active = Column(Boolean, default=False, nullable=False)
