from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from app.core.db import Base
from app.models.base.mixins import TimestampMixin


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    # null only for platform super admins
    company_id = Column(Integer, ForeignKey("companies.id", ondelete="CASCADE"), nullable=True, index=True)
    username = Column(String(150), unique=True, nullable=False, index=True)
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(String(50), nullable=False, default="cashier")
    is_active = Column(Boolean, default=True, nullable=False)
    token_version = Column(Integer, nullable=False, default=0)
    last_login = Column(DateTime(timezone=True))
    version = Column(Integer, nullable=False, default=1)

    created_by_admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    company = relationship("Company", lazy="selectin")

    def __repr__(self):
        return f"<User id={self.id} username={self.username} role={self.role} company_id={self.company_id}>"
