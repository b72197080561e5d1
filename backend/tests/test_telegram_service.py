"""Tests for the Telegram gateway (httpx mock transport) and message formatting."""

import json
import pytest
from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

import httpx

from tableside.schemas.order import PaymentMethod
from tableside.schemas.stats import DailySummary, ItemCount
from tableside.services.payment_service import Screenshot
from tableside.services.telegram_service import NotificationService, TelegramGateway


def _gateway(handler, **kwargs) -> TelegramGateway:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    options = {"bot_token": "123:ABC", "chat_id": "-1001", "api_base": "https://telegram.test"}
    options.update(kwargs)
    return TelegramGateway(client=client, **options)


class TestTelegramGateway:
    @pytest.mark.asyncio
    async def test_send_message(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"ok": True, "result": {"message_id": 1}})

        gateway = _gateway(handler)
        assert await gateway.send_message("<b>hi</b>") is True

        request = captured[0]
        assert request.method == "POST"
        assert request.url.path == "/bot123:ABC/sendMessage"
        assert json.loads(request.content) == {
            "chat_id": "-1001",
            "text": "<b>hi</b>",
            "parse_mode": "HTML",
        }
        await gateway.close()

    @pytest.mark.asyncio
    async def test_send_photo_is_multipart(self):
        captured = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200, json={"ok": True, "result": {}})

        gateway = _gateway(handler)
        assert await gateway.send_photo(b"PNGDATA", "caption text", "receipt.png", "image/png") is True

        request = captured[0]
        body = request.read()
        assert request.url.path == "/bot123:ABC/sendPhoto"
        assert request.headers["content-type"].startswith("multipart/form-data")
        assert b'name="photo"; filename="receipt.png"' in body
        assert b"PNGDATA" in body
        assert b"caption text" in body
        assert b"HTML" in body

    @pytest.mark.asyncio
    async def test_ok_false_is_failure(self):
        gateway = _gateway(lambda request: httpx.Response(200, json={"ok": False, "description": "chat not found"}))
        assert await gateway.send_message("hi") is False

    @pytest.mark.asyncio
    async def test_http_error_is_failure(self):
        gateway = _gateway(lambda request: httpx.Response(502, text="Bad Gateway"))
        assert await gateway.send_message("hi") is False

    @pytest.mark.asyncio
    async def test_non_json_body_is_failure(self):
        gateway = _gateway(lambda request: httpx.Response(200, text="<html>"))
        assert await gateway.send_message("hi") is False

    @pytest.mark.asyncio
    async def test_transport_error_is_failure(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        gateway = _gateway(handler)
        assert await gateway.send_photo(b"x", "caption") is False

    @pytest.mark.asyncio
    async def test_unconfigured_gateway_makes_no_calls(self):
        captured = []

        def handler(request):
            captured.append(request)
            return httpx.Response(200, json={"ok": True})

        gateway = _gateway(handler, bot_token="", chat_id="")
        assert gateway.is_configured is False
        assert await gateway.send_message("hi") is False
        assert captured == []


class TestNotificationFormatting:
    @pytest.fixture
    def order(self):
        return SimpleNamespace(
            table_number="5",
            items=[
                {"id": 1, "name": "Burger", "price": 12.99, "quantity": 1, "total": 12.99},
                {"id": 2, "name": "Salad", "price": 8.99, "quantity": 2, "total": 17.98},
            ],
            total_amount=Decimal("30.97"),
            timestamp=datetime(2025, 6, 1, 19, 30),
        )

    @pytest.mark.asyncio
    async def test_order_notification(self, notifications, notifier, order):
        assert await notifications.send_order_notification(order) is True

        text = notifier.messages[0]
        assert text.startswith("🍽️ <b>New Order - Table 5</b>")
        assert "• Burger x1 - $12.99\n• Salad x2 - $17.98" in text
        assert "<b>Total: $30.97</b>" in text
        assert "2025-06-01 19:30" in text

    @pytest.mark.asyncio
    async def test_payment_confirmation_caption(self, notifications, notifier, order):
        shot = Screenshot(content=b"img", filename="p.jpg", content_type="image/jpeg")

        await notifications.send_payment_confirmation(order, PaymentMethod.BANK_TRANSFER, shot)

        sent = notifier.photos[0]
        assert sent["photo"] == b"img"
        assert sent["content_type"] == "image/jpeg"
        assert "<b>Method:</b> Bank Transfer" in sent["caption"]
        assert sent["caption"].endswith("📸 <b>Payment Screenshot Attached</b>")

    @pytest.mark.asyncio
    async def test_bill_payment_caption(self, notifications, notifier):
        bill = SimpleNamespace(
            table_number="3",
            items=[{"id": 1, "name": "Soda", "price": 2.5, "quantity": 2, "total": 5.0}],
            subtotal=Decimal("5.00"), tax=Decimal("0.75"), total=Decimal("5.75"),
        )
        shot = Screenshot(content=b"img", content_type="image/png")

        await notifications.send_bill_payment_confirmation(bill, PaymentMethod.MOBILE_MONEY, shot)

        caption = notifier.photos[0]["caption"]
        assert "Table 3" in caption
        assert "Subtotal: $5.00" in caption
        assert "Tax: $0.75" in caption
        assert "Total: $5.75" in caption
        assert "Mobile Money" in caption

    @pytest.mark.asyncio
    async def test_waiter_call_and_bill_request(self, notifications, notifier):
        await notifications.send_waiter_call("12")
        await notifications.send_bill_request("12")

        assert "Table 12 is calling the waiter" in notifier.messages[0]
        assert "Table 12 is requesting the bill" in notifier.messages[1]

    @pytest.mark.asyncio
    async def test_daily_summary_lists_top_five(self, notifications, notifier):
        summary = DailySummary(
            day=date(2025, 6, 1),
            total_orders=14,
            total_revenue=Decimal("210.5"),
            most_ordered_items=[ItemCount(name=f"Dish {n}", count=10 - n) for n in range(1, 7)],
            most_active_table="7",
            waiter_calls=3,
            bill_requests=2,
        )

        await notifications.send_daily_summary(summary)

        text = notifier.messages[0]
        assert "📅 2025-06-01" in text
        assert "<b>Orders:</b> 14" in text
        assert "<b>Revenue:</b> $210.50" in text
        assert "<b>Most Active Table:</b> 7" in text
        assert "1. Dish 1 (9 orders)" in text
        assert "5. Dish 5 (5 orders)" in text
        assert "Dish 6" not in text
        assert "<b>Waiter Calls:</b> 3" in text
        assert "<b>Bill Requests:</b> 2" in text

    def test_custom_currency(self, notifier):
        assert NotificationService(notifier, currency_symbol="ETB ")._money(Decimal("4.5")) == "ETB 4.50"
