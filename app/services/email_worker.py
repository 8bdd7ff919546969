import asyncio
import logging
from datetime import datetime, timezone
from typing import TypedDict

from aiosmtplib import SMTPException
from sqlalchemy import select

from app.database import AsyncSessionLocal
from app.models.email import EmailLog
from app.utils.email import email_configured, send_email_async

logger = logging.getLogger(__name__)


class EmailJob(TypedDict):
    log_id: int
    subject: str
    body: str
    to_email: str


# Per-process queue; every job is also recorded in email_logs
email_queue: asyncio.Queue[EmailJob] = asyncio.Queue()


async def _mark(log_id: int, status: str, error: str | None = None):
    async with AsyncSessionLocal() as db:
        result = await db.execute(select(EmailLog).where(EmailLog.id == log_id))
        log_entry = result.scalars().first()
        if log_entry:
            log_entry.status = status
            log_entry.error_message = error
            if status == "sent":
                log_entry.sent_at = datetime.now(timezone.utc)
            await db.commit()


async def process_job(job: EmailJob):
    if not email_configured():
        logger.info("Email skipped, EMAIL_HOST not set: %s", job["subject"])
        await _mark(job["log_id"], "skipped")
        return

    try:
        await send_email_async(job["subject"], job["body"], job["to_email"])
    except (SMTPException, OSError) as e:
        logger.warning("Email %s failed: %s", job["log_id"], e)
        await _mark(job["log_id"], "failed", str(e))
    else:
        await _mark(job["log_id"], "sent")


async def email_worker():
    """Pull jobs off the queue until cancelled at shutdown."""
    logger.info("Background email worker started")
    while True:
        job = await email_queue.get()
        try:
            await process_job(job)
        except Exception:
            logger.exception("Email worker failed on job %s", job.get("log_id"))
        finally:
            email_queue.task_done()


async def enqueue_email(subject: str, body: str, to_email: str, task_id: int | None = None) -> int:
    """Record the email in email_logs and hand it to the worker. Returns the log id."""
    async with AsyncSessionLocal() as db:
        new_log = EmailLog(subject=subject, body=body, to_email=to_email, task_id=task_id, status="pending")
        db.add(new_log)
        await db.commit()
        log_id = new_log.id

    await email_queue.put({
        "log_id": log_id,
        "subject": subject,
        "body": body,
        "to_email": to_email,
    })
    logger.debug("Enqueued email %s: %s", log_id, subject)
    return log_id
