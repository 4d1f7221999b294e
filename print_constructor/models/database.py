"""数据库 ORM 模型."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ProjectRecord(Base):
    """项目存储表（键值形式）."""

    __tablename__ = "projects"

    key = Column(String(100), primary_key=True)
    value = Column(Text, nullable=False)
    product_type = Column(String(40))
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def __repr__(self) -> str:
        return f"<ProjectRecord(key={self.key}, product_type={self.product_type})>"
