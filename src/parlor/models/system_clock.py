"""System-level bookkeeping models."""

from sqlalchemy import BigInteger
from sqlalchemy.orm import Mapped, mapped_column

from parlor.db.session import Base


class SystemClock(Base):
    """Monotonic counters used for deterministic ordering.

    A single row (``id == 1``) is kept; ``message_seq`` is the last
    ``order_index`` handed to a direct message.
    """

    __tablename__ = "system_clock"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, default=1)
    message_seq: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
