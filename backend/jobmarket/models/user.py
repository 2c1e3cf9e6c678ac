import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from jobmarket.database import Base


class UserType(str, enum.Enum):
    WORKER = "worker"
    EMPLOYER = "employer"
    ADMIN = "admin"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    email: Mapped[str] = mapped_column(
        String(255), unique=True, nullable=False, index=True
    )
    hashed_password: Mapped[str | None] = mapped_column(String(255))
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    user_type: Mapped[UserType] = mapped_column(SAEnum(UserType), default=UserType.WORKER)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    # Set for accounts created by a team invite with a temporary credential
    must_change_password: Mapped[bool] = mapped_column(Boolean, default=False)

    # Business context used by guards when a request names no business
    selected_business_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("businesses.id", use_alter=True, ondelete="SET NULL")
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    @property
    def is_employer(self) -> bool:
        return self.user_type == UserType.EMPLOYER
