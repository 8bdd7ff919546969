from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from app.database import Base


class EmailLog(Base):
    """One outbound notification. Rows outlive the task they mention."""

    __tablename__ = "email_logs"

    id = Column(Integer, primary_key=True, index=True)
    to_email = Column(String(255), nullable=False)
    subject = Column(String(255), nullable=False)
    body = Column(Text, nullable=False)
    # Plain reference, not a foreign key: purging a task keeps its mail history
    task_id = Column(Integer, nullable=True, index=True)
    status = Column(String(20), default="pending", nullable=False)  # pending, sent, failed, skipped
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    sent_at = Column(DateTime(timezone=True), nullable=True)
    error_message = Column(Text, nullable=True)

    def __repr__(self):
        return f"<EmailLog {self.id} {self.status} to={self.to_email}>"
