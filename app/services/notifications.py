"""Outbound email for share lifecycle events.

Delivery errors surface as ``NotificationFailure``; callers decide whether
they matter. Share mutations and the expiry sweep log them and move on.
"""
import logging
from datetime import datetime
from html import escape
from typing import Optional

import httpx

from app.core.config import settings
from app.core.errors import NotificationFailure
from app.models.share import SharePermission

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


def _permission_label(permission) -> str:
    return "Can Edit" if SharePermission(permission) is SharePermission.EDIT else "Can View"


def _layout(heading: str, body: str) -> str:
    return (
        '<html><body style="font-family: sans-serif; padding: 20px;">'
        f"<h2>{escape(heading)}</h2>{body}"
        '<hr><p style="font-size: 12px; color: #666;">'
        f"Sent by {escape(settings.EMAIL_FROM_NAME)}</p></body></html>"
    )


class ConsoleMailer:
    """Writes messages to the log instead of sending them (development)"""

    async def send(self, to_email: str, subject: str, html: str):
        logger.info("EMAIL to=%s subject=%r\n%s", to_email, subject, html[:500])


class ResendMailer:
    def __init__(self, api_key: str, from_address: str, timeout: float = 10.0):
        self.api_key = api_key
        self.from_address = from_address
        self.timeout = timeout

    async def send(self, to_email: str, subject: str, html: str):
        payload = {"from": self.from_address, "to": [to_email], "subject": subject, "html": html}
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    RESEND_API_URL,
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
        except httpx.HTTPError as exc:
            raise NotificationFailure(f"Email delivery to {to_email} failed: {exc}") from exc


class NotificationService:
    def __init__(self, mailer, app_url: str = None):
        self.mailer = mailer
        self.app_url = (app_url or settings.APP_URL).rstrip("/")

    def page_url(self, slug: str) -> str:
        return f"{self.app_url}/public/{slug}"

    def access_link(self, token: str) -> str:
        return f"{self.app_url}/accept-share?token={token}"

    async def _deliver(self, to_email: str, subject: str, html: str):
        try:
            await self.mailer.send(to_email, subject, html)
        except NotificationFailure:
            raise
        except Exception as exc:
            raise NotificationFailure(f"Email delivery to {to_email} failed: {exc}") from exc

    async def share_invitation(
        self,
        to_email: str,
        from_name: str,
        page_title: str,
        access_link: str,
        permission: SharePermission,
        expires_at: Optional[datetime] = None,
    ):
        subject = f'{from_name} shared "{page_title}" with you'
        body = (
            f"<p>{escape(from_name)} invited you to <strong>{escape(page_title)}</strong> "
            f"({_permission_label(permission)}).</p>"
            f'<p><a href="{escape(access_link)}">Open the page</a></p>'
        )
        if expires_at is not None:
            body += f"<p>This invitation expires on {expires_at.strftime('%d %B %Y')}.</p>"
        await self._deliver(to_email, subject, _layout("You have been invited", body))

    async def permission_changed(
        self,
        to_email: str,
        page_title: str,
        old_permission: SharePermission,
        new_permission: SharePermission,
        page_url: str,
    ):
        subject = f'Your permissions changed for "{page_title}"'
        body = (
            f"<p>Your access to <strong>{escape(page_title)}</strong> changed from "
            f"{_permission_label(old_permission)} to {_permission_label(new_permission)}.</p>"
            f'<p><a href="{escape(page_url)}">Open the page</a></p>'
        )
        await self._deliver(to_email, subject, _layout("Permissions changed", body))

    async def access_revoked(self, to_email: str, page_title: str, revoked_by: str):
        subject = f'Access removed for "{page_title}"'
        body = (
            f"<p>{escape(revoked_by)} removed your access to "
            f"<strong>{escape(page_title)}</strong>.</p>"
        )
        await self._deliver(to_email, subject, _layout("Access removed", body))

    async def share_expired(self, to_email: str, page_title: str):
        subject = f'Your access to "{page_title}" has expired'
        body = (
            f"<p>Your access to <strong>{escape(page_title)}</strong> has expired.</p>"
            "<p>If you need continued access, please contact the page owner.</p>"
        )
        await self._deliver(to_email, subject, _layout("Access expired", body))


def build_mailer():
    if settings.EMAIL_SERVICE == "resend" and settings.RESEND_API_KEY:
        from_address = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
        return ResendMailer(settings.RESEND_API_KEY, from_address)
    if settings.EMAIL_SERVICE == "resend":
        logger.warning("EMAIL_SERVICE is resend but RESEND_API_KEY is not set; logging emails instead")
    return ConsoleMailer()


async def get_notifier() -> NotificationService:
    return NotificationService(build_mailer())
