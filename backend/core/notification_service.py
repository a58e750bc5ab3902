# backend/core/notification_service.py

from collections import deque
from typing import Any, Deque, Dict, List, Optional
import logging

from .config import Settings
from .notification_adapter import (
    CompositeAdapter,
    LoggingAdapter,
    NotificationAdapter,
    NotificationMessage,
    NotificationPriority,
    WebhookAdapter,
)


logger = logging.getLogger(__name__)


class NotificationService:
    """
    Best-effort delivery of restaurant events

    Built once per application and scheduled through FastAPI background
    tasks. Failures are logged and reported as ``False``, never raised.
    """

    def __init__(self, adapter: Optional[NotificationAdapter] = None):
        self._adapter = adapter or CompositeAdapter([LoggingAdapter()])
        self.sent: Deque[NotificationMessage] = deque(maxlen=100)

    @classmethod
    def from_settings(cls, settings: Settings) -> "NotificationService":
        """Create the service with every channel the settings enable"""
        adapters: List[NotificationAdapter] = [LoggingAdapter()]
        if settings.notification_webhook_url:
            adapters.append(
                WebhookAdapter(
                    settings.notification_webhook_url,
                    timeout_seconds=settings.notification_timeout_seconds,
                )
            )
        return cls(CompositeAdapter(adapters))

    def set_adapter(self, adapter: NotificationAdapter):
        self._adapter = adapter

    async def _deliver_to_tenant(self, tenant_id: int, message: NotificationMessage) -> bool:
        try:
            delivered = await self._adapter.send_to_tenant(tenant_id, message)
        except Exception as e:
            logger.error(f"Failed to send {message.event} notification: {str(e)}")
            return False
        self.sent.append(message)
        return delivered

    async def notify_new_order(
        self, tenant_id: int, order_id: int, order_number: str,
        table_number: Optional[str], total: str
    ) -> bool:
        where = f"Masa {table_number}" if table_number else "Paket"
        message = NotificationMessage(
            event="order.created",
            subject=f"Yeni sipariş {order_number}",
            message=f"{where} - toplam {total}",
            priority=NotificationPriority.HIGH,
            metadata={"order_id": order_id, "order_number": order_number},
        )
        return await self._deliver_to_tenant(tenant_id, message)

    async def notify_order_status(
        self, tenant_id: int, order_id: int, order_number: str,
        old_status: str, new_status: str
    ) -> bool:
        message = NotificationMessage(
            event="order.status_changed",
            subject=f"Sipariş {order_number} durumu güncellendi",
            message=f"{old_status} -> {new_status}",
            metadata={
                "order_id": order_id,
                "order_number": order_number,
                "old_status": old_status,
                "new_status": new_status,
            },
        )
        return await self._deliver_to_tenant(tenant_id, message)

    async def send_welcome(
        self, tenant_id: int, email: str, restaurant_name: str,
        panel_url: str, metadata: Optional[Dict[str, Any]] = None
    ) -> bool:
        message = NotificationMessage(
            event="tenant.registered",
            subject=f"{restaurant_name} hesabınız hazır",
            message=f"Yönetim paneli: {panel_url}",
            metadata={"panel_url": panel_url, **(metadata or {})},
        )
        try:
            delivered = await self._adapter.send_to_customer(tenant_id, email, message)
        except Exception as e:
            logger.error(f"Failed to send welcome notification: {str(e)}")
            return False
        self.sent.append(message)
        return delivered
