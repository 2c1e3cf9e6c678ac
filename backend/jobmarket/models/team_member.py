import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, JSON, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from jobmarket.database import Base


class TeamMember(Base):
    """Scoped access to one business for one user, short of ownership.

    `permissions` holds explicit grants on top of the role defaults from
    auth/permissions.py. Removal flips `active`; rows are only hard-deleted
    together with their business.
    """

    __tablename__ = "team_members"
    __table_args__ = (
        UniqueConstraint("business_id", "user_id", name="uq_team_members_business_user"),
        UniqueConstraint("business_id", "email", name="uq_team_members_business_email"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    business_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)

    # owner | admin | manager | supervisor | staff | delegate
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="staff")
    permissions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    # Audit
    invited_by_id: Mapped[str | None] = mapped_column(String(36), ForeignKey("users.id"))
    invited_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    joined_at: Mapped[datetime | None] = mapped_column(DateTime)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )
