# backend/civicmatch/database/models.py
"""
DATABASE MODELS: SQLAlchemy ORM Models
=======================================

Unmapped priorities are kept so the taxonomy can be extended with the phrasings users
actually type. Works with SQLite and PostgreSQL.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict

from sqlalchemy import Column, DateTime, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class UnmappedTerm(Base):
    __tablename__ = "unmapped_terms"

    id = Column(Integer, primary_key=True, index=True)

    text = Column(Text, nullable=False, comment="Priority text exactly as submitted")
    strategy = Column(String(32), nullable=False, default="scored")
    zip_code = Column(String(5), nullable=True, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    __table_args__ = (
        Index("ix_unmapped_terms_strategy_created", "strategy", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "strategy": self.strategy,
            "zip_code": self.zip_code,
            "created_at": self.created_at.isoformat() + "Z" if self.created_at else None,
        }

    def __repr__(self) -> str:
        return f"<UnmappedTerm(id={self.id}, strategy='{self.strategy}')>"
