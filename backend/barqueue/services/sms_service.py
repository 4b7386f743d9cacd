"""SMS notifications for ready and reminder messages."""

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from barqueue.core.config import Settings, settings as default_settings
from barqueue.core.phone import normalize_phone
from barqueue.models import Order

logger = logging.getLogger(__name__)

READY_TEMPLATE = "Hi {name}! Your {drink} is ready. Pick it up at the bar."
REMINDER_TEMPLATE = "Reminder: Hi {name}! Your {drink} is waiting for you at the bar."

# Dispatch statuses
SENT = "sent"
FAILED = "failed"
DISABLED = "disabled"


@dataclass
class SmsResult:
    """Result of a single gateway call."""
    success: bool
    sid: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[int] = None


@dataclass
class DispatchResult:
    """Outcome of a notification attempt as seen by the order lifecycle."""
    status: str  # "sent", "failed", "disabled"
    channel: str  # "sms" or "disabled"
    sid: Optional[str] = None
    error: Optional[str] = None
    error_code: Optional[int] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == SENT


class SmsGateway:
    """Twilio Messages API over httpx."""

    def __init__(
        self,
        account_sid: Optional[str],
        auth_token: Optional[str],
        from_number: Optional[str] = None,
        messaging_service_sid: Optional[str] = None,
        api_base: str = "https://api.twilio.com/2010-04-01",
        timeout: float = 15.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.messaging_service_sid = messaging_service_sid
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, cfg: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> "SmsGateway":
        return cls(
            account_sid=cfg.twilio_account_sid,
            auth_token=cfg.twilio_auth_token,
            from_number=cfg.twilio_phone_number,
            messaging_service_sid=cfg.twilio_messaging_service_sid,
            api_base=cfg.twilio_api_base,
            timeout=cfg.sms_timeout_seconds,
            transport=transport,
        )

    @property
    def configured(self) -> bool:
        return bool(self.account_sid and self.auth_token and (self.messaging_service_sid or self.from_number))

    async def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._http_client

    async def send(self, to: str, body: str) -> SmsResult:
        """Send one SMS. Never raises; failures come back as results."""
        if not self.configured:
            return SmsResult(success=False, error="Twilio credentials not configured")

        data = {"To": to, "Body": body}
        if self.messaging_service_sid:
            data["MessagingServiceSid"] = self.messaging_service_sid
        else:
            data["From"] = self.from_number

        client = await self._get_client()
        try:
            response = await client.post(
                f"{self.api_base}/Accounts/{self.account_sid}/Messages.json",
                auth=(self.account_sid, self.auth_token),
                data=data,
            )
        except httpx.HTTPError as e:
            logger.error(f"SMS send error to {to}: {e}")
            return SmsResult(success=False, error=str(e))

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = {}

        if response.is_success and not payload.get("error_code"):
            return SmsResult(success=True, sid=payload.get("sid"))

        error = payload.get("message") or response.text or f"HTTP {response.status_code}"
        error_code = payload.get("error_code") or payload.get("code")
        logger.warning(f"Twilio rejected SMS to {to}: {response.status_code} {error}")
        return SmsResult(success=False, error=error, error_code=error_code)

    async def close(self):
        """Close HTTP client."""
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None


class NotificationDispatcher:
    """Composes order messages and sends them when messaging is available.

    Messaging that is switched off or unconfigured is a soft no-op reported
    as ``status="disabled"``, so the order lifecycle never fails because of it.
    """

    def __init__(self, gateway: SmsGateway, cfg: Optional[Settings] = None):
        self.gateway = gateway
        self.settings = cfg or default_settings

    def ready_message(self, order: Order) -> str:
        return READY_TEMPLATE.format(name=order.name, drink=order.drink_name)

    def reminder_message(self, order: Order) -> str:
        return REMINDER_TEMPLATE.format(name=order.name, drink=order.drink_name)

    def disabled_reason(self) -> Optional[str]:
        if not self.settings.sms_enabled:
            return "sms_disabled"
        if not self.gateway.configured:
            return "sms_not_configured"
        return None

    async def dispatch_ready(self, order: Order) -> DispatchResult:
        return await self._dispatch(order, self.ready_message(order), kind="ready")

    async def dispatch_reminder(self, order: Order) -> DispatchResult:
        return await self._dispatch(order, self.reminder_message(order), kind="reminder")

    async def _dispatch(self, order: Order, body: str, kind: str) -> DispatchResult:
        reason = self.disabled_reason()
        if reason:
            logger.info(f"SMS {kind} for order {order.id} skipped: {reason}")
            return DispatchResult(status=DISABLED, channel="disabled", reason=reason)

        to = normalize_phone(order.phone, self.settings.sms_country_code)
        logger.debug(f"Sending {kind} SMS for order {order.id} to {to}: {body}")
        result = await self.gateway.send(to, body)
        if result.success:
            logger.info(f"SMS {kind} sent for order {order.id} (sid={result.sid})")
            return DispatchResult(status=SENT, channel="sms", sid=result.sid)

        logger.warning(f"SMS {kind} failed for order {order.id}: {result.error}")
        return DispatchResult(
            status=FAILED,
            channel="sms",
            error=result.error,
            error_code=result.error_code,
        )


# Singleton instances
_gateway: Optional[SmsGateway] = None
_dispatcher: Optional[NotificationDispatcher] = None


def get_sms_gateway() -> SmsGateway:
    """Get or create the gateway singleton."""
    global _gateway
    if _gateway is None:
        _gateway = SmsGateway.from_settings(default_settings)
    return _gateway


def get_notification_dispatcher() -> NotificationDispatcher:
    """FastAPI dependency: the shared dispatcher."""
    global _dispatcher
    if _dispatcher is None:
        _dispatcher = NotificationDispatcher(get_sms_gateway(), default_settings)
    return _dispatcher


async def close_sms_gateway() -> None:
    global _gateway, _dispatcher
    if _gateway is not None:
        await _gateway.close()
    _gateway = None
    _dispatcher = None
