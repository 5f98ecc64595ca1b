"""Task notifications — best-effort email to the task owner.

Learn: The notifier is built exactly once in create_app() from settings and
stored on app.state; routes receive it through the get_notifier dependency.
There are two explicit variants:

- NullNotifier: mail is not configured. Logs that it skipped and returns.
- SmtpNotifier: sends through SMTP with aiosmtplib.

Notification is fire-and-forget. The task route schedules it as a FastAPI
background task, which runs after the 201 response has been sent. Any
failure is logged and swallowed here; it can never fail or roll back the
task that was already committed.
"""

import html as html_lib
from dataclasses import dataclass
from datetime import datetime
from email.message import EmailMessage
from typing import Optional

import aiosmtplib
import structlog
from fastapi import Request

from taskmaster.config import Settings

logger = structlog.get_logger()


@dataclass(frozen=True)
class TaskCreatedNotice:
    """Plain snapshot of what the email needs (no ORM objects cross the
    response boundary)."""

    to_email: str
    username: str
    title: str
    description: str
    due_date: datetime
    priority: str
    status: str
    assignee: Optional[str] = None


def render_task_created(notice: TaskCreatedNotice) -> tuple[str, str, str]:
    """Return (subject, text body, html body)."""
    name = notice.username or "User"
    description = notice.description or "N/A"
    assignee = notice.assignee or "N/A"
    due_text = notice.due_date.strftime("%B %d, %Y at %I:%M %p")
    status_label = notice.status.replace("-", " ")

    subject = f"New Task Created: {notice.title}"
    text = (
        f"Hello {name},\n\n"
        "A new task has been created for you:\n\n"
        f"Title: {notice.title}\n"
        f"Description: {description}\n"
        f"Due Date: {due_text}\n"
        f"Priority: {notice.priority}\n"
        f"Status: {notice.status}\n"
        f"Assignee: {assignee}\n\n"
        "You can view your tasks in the Task Master application.\n\n"
        "Regards,\nThe Task Master Team"
    )
    # User-supplied text is escaped for the HTML part only
    safe_name = html_lib.escape(name)
    safe_title = html_lib.escape(notice.title)
    safe_description = html_lib.escape(description)
    safe_assignee = html_lib.escape(assignee)
    html = f"""\
<div style="font-family: sans-serif; line-height: 1.6;">
  <h2>Hello {safe_name},</h2>
  <p>A new task titled "<strong>{safe_title}</strong>" has been created for you in Task Master.</p>
  <h3>Task Details:</h3>
  <ul>
    <li><strong>Title:</strong> {safe_title}</li>
    <li><strong>Description:</strong> {safe_description}</li>
    <li><strong>Due Date:</strong> {due_text}</li>
    <li><strong>Priority:</strong> <span style="text-transform: capitalize;">{notice.priority}</span></li>
    <li><strong>Status:</strong> <span style="text-transform: capitalize;">{status_label}</span></li>
    <li><strong>Assignee:</strong> {safe_assignee}</li>
  </ul>
  <hr>
  <p style="font-size: 0.9em; color: #666;">This is an automated notification. Please do not reply.</p>
</div>
"""
    return subject, text, html


class Notifier:
    """Base notifier. Subclasses implement _send_task_created."""

    async def notify_task_created(self, notice: TaskCreatedNotice) -> None:
        """Send the task-created email, logging (never raising) on failure."""
        try:
            await self._send_task_created(notice)
        except Exception as e:
            logger.error(
                "notify.send_failed",
                notifier=type(self).__name__,
                to=notice.to_email,
                error=str(e),
            )

    async def _send_task_created(self, notice: TaskCreatedNotice) -> None:
        raise NotImplementedError


class NullNotifier(Notifier):
    """Used when no mail transport is configured."""

    async def _send_task_created(self, notice: TaskCreatedNotice) -> None:
        logger.info("notify.skipped", reason="mail not configured", title=notice.title)


class SmtpNotifier(Notifier):
    """Sends notifications over SMTP via aiosmtplib."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        username: str = "",
        password: str = "",
        use_tls: bool = False,
        start_tls: bool = True,
        timeout: float = 30.0,
    ):
        self.host = host
        self.port = port
        self.sender = sender
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.start_tls = start_tls
        self.timeout = timeout

    def build_message(self, notice: TaskCreatedNotice) -> EmailMessage:
        subject, text, html = render_task_created(notice)
        message = EmailMessage()
        message["From"] = self.sender
        message["To"] = notice.to_email
        message["Subject"] = subject
        message.set_content(text)
        message.add_alternative(html, subtype="html")
        return message

    async def _send_task_created(self, notice: TaskCreatedNotice) -> None:
        await aiosmtplib.send(
            self.build_message(notice),
            hostname=self.host,
            port=self.port,
            username=self.username or None,
            password=self.password or None,
            use_tls=self.use_tls,
            start_tls=False if self.use_tls else self.start_tls,
            timeout=self.timeout,
        )
        logger.info("notify.sent", to=notice.to_email, title=notice.title)


def build_notifier(settings: Settings) -> Notifier:
    """Pick the notifier variant for this process."""
    if not settings.smtp_host:
        logger.warning("notify.disabled", reason="TASKMASTER_SMTP_HOST not set")
        return NullNotifier()

    logger.info("notify.smtp_configured", host=settings.smtp_host, port=settings.smtp_port)
    return SmtpNotifier(
        host=settings.smtp_host,
        port=settings.smtp_port,
        sender=settings.email_from,
        username=settings.smtp_user,
        password=settings.smtp_password,
        use_tls=settings.smtp_use_tls,
        start_tls=settings.smtp_start_tls,
    )


def get_notifier(request: Request) -> Notifier:
    """FastAPI dependency — the notifier built at app creation."""
    return request.app.state.notifier
