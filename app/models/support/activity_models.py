from sqlalchemy import Column, Integer, String, ForeignKey, Index
from app.core.db import Base
from app.models.base.mixins import TimestampMixin


class UserActivity(Base, TimestampMixin):
    """Append-only audit trail of company actions. Rows are never updated."""

    __tablename__ = "user_activity"

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True)
    # null for system jobs and gateway webhooks
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    username_snapshot = Column(String(150), nullable=False, index=True)
    code = Column(String(50), nullable=False, index=True)
    message = Column(String, nullable=False)

    __table_args__ = (
        Index("ix_user_activity_company_created", "company_id", "created_at"),
        Index("ix_user_activity_company_code", "company_id", "code"),
    )

    def __repr__(self):
        return f"<UserActivity id={self.id} code={self.code} user={self.username_snapshot}>"
