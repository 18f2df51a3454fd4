"""Network state ORM model holding the process-wide pause flag."""

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column

from expenditures.models import Base, BaseModel


class NetworkState(Base, BaseModel):
    """Singleton row; absent row means not stopped."""

    __tablename__ = "network_state"

    stopped: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    changed_by: Mapped[str | None] = mapped_column(String(255), nullable=True)

    def __repr__(self) -> str:
        return f"<NetworkState(stopped={self.stopped}, changed_by={self.changed_by!r})>"


__all__ = ["NetworkState"]
