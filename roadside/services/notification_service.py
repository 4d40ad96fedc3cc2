import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from uuid import UUID

import resend
from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from twilio.rest import Client as TwilioClient

from roadside.config import Settings
from roadside.errors import NotFound
from roadside.models import Notification, NotificationType, Provider, User
from roadside.services.background import BackgroundTasks

logger = logging.getLogger(__name__)

class _Blank(dict):
    def __missing__(self, key):
        return ""

@dataclass(frozen=True)
class Template:
    title: str
    body: str
    channels: Tuple[str, ...] = ("in_app",)

TEMPLATES: Dict[NotificationType, Template] = {
    NotificationType.REQUEST_CREATED: Template(
        "Request Received",
        "Your {service_type} request #{request_id} has been created. "
        "{provider_count} provider(s) found nearby.",
        ("in_app", "sms"),
    ),
    NotificationType.REQUEST_ACCEPTED: Template(
        "Provider Assigned",
        "{business_name} has accepted your request #{request_id} and will reach you soon. "
        "Contact: {provider_phone}",
        ("in_app", "sms", "email"),
    ),
    NotificationType.STATUS_UPDATE: Template(
        "Request #{request_id}: {status_label}",
        "Your service request #{request_id} is now {status_label}.",
        ("in_app", "sms"),
    ),
    NotificationType.REQUEST_CANCELLED: Template(
        "Request Cancelled",
        "Service request #{request_id} has been cancelled. {reason}",
        ("in_app", "sms"),
    ),
    NotificationType.SERVICE_COMPLETION: Template(
        "Service Completed",
        "Your service request #{request_id} has been completed successfully. "
        "Total amount: {currency}{amount}.",
        ("in_app",),
    ),
    NotificationType.PAYMENT: Template(
        "Payment Receipt #{request_id}",
        "Payment of {currency}{amount} for service #{request_id} ({service_type}) has been received "
        "via {payment_method}. Transaction: {transaction_id}. Thank you!",
        ("in_app", "email"),
    ),
    NotificationType.PAYMENT_RECEIVED: Template(
        "Payment Received #{request_id}",
        "{customer_name} paid {currency}{amount} for service #{request_id} ({service_type}).",
        ("in_app", "email"),
    ),
    NotificationType.RATING: Template(
        "New Rating",
        "You received a {rating}-star rating for request #{request_id}.",
        ("in_app",),
    ),
    NotificationType.PROFILE_UPDATE: Template(
        "Profile Updated",
        "Your provider profile information has been updated successfully.",
        ("in_app",),
    ),
}

def render(kind: NotificationType, payload: Dict) -> Tuple[str, str]:
    template = TEMPLATES[kind]
    values = _Blank(payload)
    return template.title.format_map(values), template.body.format_map(values)

class Notifier:
    """
    Fire-and-forget notification dispatch.

    Every delivery stores an in-app notification and then pushes to the
    template's external channels. Clients are built from the settings object
    handed in at startup.
    """

    def __init__(
        self,
        settings: Settings,
        session_factory: async_sessionmaker,
        tasks: BackgroundTasks,
    ):
        self.settings = settings
        self.session_factory = session_factory
        self.tasks = tasks
        self._twilio: Optional[TwilioClient] = None
        if settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN:
            self._twilio = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)

    def notify(
        self,
        user_id: UUID,
        kind: NotificationType,
        payload: Dict,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> None:
        """Schedule a notification; never waits and never raises"""
        payload = {"currency": self.settings.CURRENCY_SYMBOL, **payload}
        self.tasks.dispatch(
            self.deliver(user_id, kind, payload, email=email, phone=phone),
            name=f"notify:{kind.value}:{user_id}",
        )

    def notify_provider(self, provider_id: UUID, kind: NotificationType, payload: Dict) -> None:
        """Schedule a notification for the account behind a provider profile"""
        payload = {"currency": self.settings.CURRENCY_SYMBOL, **payload}
        self.tasks.dispatch(
            self._deliver_to_provider(provider_id, kind, payload),
            name=f"notify:{kind.value}:provider:{provider_id}",
        )

    async def _deliver_to_provider(self, provider_id: UUID, kind: NotificationType, payload: Dict) -> Dict[str, bool]:
        async with self.session_factory() as session:
            provider = await session.get(Provider, provider_id)
        if provider is None:
            logger.warning("Notification %s skipped: provider %s not found", kind.value, provider_id)
            return {}
        return await self.deliver(provider.user_id, kind, payload, email=provider.email)

    async def deliver(
        self,
        user_id: UUID,
        kind: NotificationType,
        payload: Dict,
        email: Optional[str] = None,
        phone: Optional[str] = None,
    ) -> Dict[str, bool]:
        template = TEMPLATES[kind]
        title, body = render(kind, payload)

        async with self.session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                logger.warning("Notification %s skipped: user %s not found", kind.value, user_id)
                return {}
            session.add(Notification(
                user_id=user_id,
                title=title,
                body=body,
                type=kind,
                data={k: v for k, v in payload.items() if v is None or isinstance(v, (str, int, float, bool))},
            ))
            await session.commit()
            email = email or user.email
            phone = phone or user.phone

        results = {"in_app": True}
        if "email" in template.channels:
            results["email"] = await self._send_email(email, title, body)
        if "sms" in template.channels:
            results["sms"] = await self._send_sms(phone, body)

        logger.info("Notification %s for user %s delivered: %s", kind.value, user_id, results)
        return results

    async def _send_email(self, email: Optional[str], subject: str, body: str) -> bool:
        """Send email via Resend"""
        if not email:
            return False
        if not self.settings.RESEND_API_KEY:
            logger.info("Email not configured, skipping email to %s: %s", email, subject)
            return False
        params = {
            "from": self.settings.FROM_EMAIL,
            "to": [email],
            "subject": subject,
            "html": f"<p>{body}</p>",
        }
        try:
            resend.api_key = self.settings.RESEND_API_KEY
            await asyncio.to_thread(resend.Emails.send, params)
            return True
        except Exception as e:
            logger.warning("Error sending email to %s: %s", email, e)
            return False

    async def _send_sms(self, phone: Optional[str], message: str) -> bool:
        """Send SMS via Twilio"""
        if not phone:
            return False
        if self._twilio is None or not self.settings.TWILIO_PHONE_NUMBER:
            logger.info("SMS not configured, skipping SMS to %s", phone)
            return False
        try:
            await asyncio.to_thread(
                self._twilio.messages.create,
                body=message,
                from_=self.settings.TWILIO_PHONE_NUMBER,
                to=phone,
            )
            return True
        except Exception as e:
            logger.warning("Error sending SMS to %s: %s", phone, e)
            return False

class NotificationService:
    """In-app notification feed for one account"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_for_user(self, user_id: UUID, limit: int = 10, unread_only: bool = False) -> List[Notification]:
        query = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            query = query.where(Notification.is_read.is_(False))
        result = await self.db.execute(
            query.order_by(Notification.created_at.desc(), Notification.id).limit(limit)
        )
        return list(result.scalars().all())

    async def unread_count(self, user_id: UUID) -> int:
        result = await self.db.execute(
            select(func.count(Notification.id)).where(
                Notification.user_id == user_id,
                Notification.is_read.is_(False)
            )
        )
        return result.scalar() or 0

    async def mark_read(self, user_id: UUID, notification_id: UUID) -> Notification:
        result = await self.db.execute(
            select(Notification).where(
                Notification.id == notification_id,
                Notification.user_id == user_id
            )
        )
        notification = result.scalar_one_or_none()
        if not notification:
            raise NotFound("Notification not found")

        notification.is_read = True
        await self.db.commit()
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.db.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
        )
        await self.db.commit()
        return result.rowcount or 0
