# backend/core/notification_adapter.py

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Any
from dataclasses import asdict, dataclass
from enum import Enum
import json
import logging
from datetime import datetime

import httpx


logger = logging.getLogger(__name__)


class NotificationPriority(str, Enum):
    """Notification priority levels"""

    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


@dataclass
class NotificationMessage:
    """Standard notification message structure"""

    event: str
    subject: str
    message: str
    priority: NotificationPriority = NotificationPriority.NORMAL
    metadata: Optional[Dict[str, Any]] = None
    timestamp: datetime = None

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = datetime.utcnow()

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["priority"] = self.priority.value
        payload["timestamp"] = self.timestamp.isoformat()
        return payload


class NotificationAdapter(ABC):
    """
    Abstract base class for notification adapters

    Implement this interface to add new delivery channels for
    restaurant events (order placed, status changed, welcome mail).
    """

    @abstractmethod
    async def send_to_tenant(self, tenant_id: int, message: NotificationMessage) -> bool:
        """Send notification to the staff of one restaurant"""
        pass

    @abstractmethod
    async def send_to_customer(
        self, tenant_id: int, recipient: str, message: NotificationMessage
    ) -> bool:
        """Send notification to a customer identified by phone or email"""
        pass

    @abstractmethod
    def get_adapter_name(self) -> str:
        pass

    @abstractmethod
    async def is_available(self) -> bool:
        pass


class LoggingAdapter(NotificationAdapter):
    """
    Default logging adapter for notifications

    Always enabled; the only channel in development and tests.
    """

    def __init__(self, log_level: int = logging.INFO):
        self.log_level = log_level

    async def send_to_tenant(self, tenant_id: int, message: NotificationMessage) -> bool:
        logger.log(
            self.log_level,
            f"[NOTIFICATION] To Tenant {tenant_id} - {message.subject}: {message.message}",
            extra={
                "notification_type": "tenant",
                "event": message.event,
                "tenant_id": tenant_id,
                "priority": message.priority.value,
                "timestamp": message.timestamp.isoformat(),
            },
        )
        return True

    async def send_to_customer(
        self, tenant_id: int, recipient: str, message: NotificationMessage
    ) -> bool:
        logger.log(
            self.log_level,
            f"[NOTIFICATION] To {recipient} (tenant {tenant_id}) - {message.subject}: {message.message}",
            extra={
                "notification_type": "customer",
                "event": message.event,
                "tenant_id": tenant_id,
                "priority": message.priority.value,
                "timestamp": message.timestamp.isoformat(),
            },
        )
        return True

    def get_adapter_name(self) -> str:
        return "logging"

    async def is_available(self) -> bool:
        return True


class WebhookAdapter(NotificationAdapter):
    """Publish events as JSON to an outbound webhook (pub/sub bridge)"""

    def __init__(self, webhook_url: str, timeout_seconds: float = 5.0):
        self.webhook_url = webhook_url
        self.timeout_seconds = timeout_seconds

    async def _post(self, body: Dict[str, Any]) -> bool:
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.post(
                self.webhook_url,
                content=json.dumps(body, default=str),
                headers={"Content-Type": "application/json"},
            )
        if response.status_code >= 400:
            logger.warning(
                f"Webhook {self.webhook_url} answered {response.status_code}: "
                f"{response.text[:200]}"
            )
            return False
        return True

    async def send_to_tenant(self, tenant_id: int, message: NotificationMessage) -> bool:
        return await self._post(
            {"channel": f"tenant:{tenant_id}", "tenant_id": tenant_id, **message.to_payload()}
        )

    async def send_to_customer(
        self, tenant_id: int, recipient: str, message: NotificationMessage
    ) -> bool:
        return await self._post(
            {
                "channel": f"customer:{recipient}",
                "tenant_id": tenant_id,
                "recipient": recipient,
                **message.to_payload(),
            }
        )

    def get_adapter_name(self) -> str:
        return "webhook"

    async def is_available(self) -> bool:
        return bool(self.webhook_url)


class CompositeAdapter(NotificationAdapter):
    """
    Composite adapter that sends notifications through multiple channels
    """

    def __init__(self, adapters: List[NotificationAdapter]):
        self.adapters = adapters

    async def send_to_tenant(self, tenant_id: int, message: NotificationMessage) -> bool:
        results = []
        for adapter in self.adapters:
            try:
                if await adapter.is_available():
                    results.append(await adapter.send_to_tenant(tenant_id, message))
            except Exception as e:
                logger.error(f"Error in {adapter.get_adapter_name()} adapter: {str(e)}")
                results.append(False)
        return any(results)

    async def send_to_customer(
        self, tenant_id: int, recipient: str, message: NotificationMessage
    ) -> bool:
        results = []
        for adapter in self.adapters:
            try:
                if await adapter.is_available():
                    results.append(
                        await adapter.send_to_customer(tenant_id, recipient, message)
                    )
            except Exception as e:
                logger.error(f"Error in {adapter.get_adapter_name()} adapter: {str(e)}")
                results.append(False)
        return any(results)

    def get_adapter_name(self) -> str:
        adapter_names = [a.get_adapter_name() for a in self.adapters]
        return f"composite({','.join(adapter_names)})"

    async def is_available(self) -> bool:
        return True
