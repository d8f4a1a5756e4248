"""Tests for SMS and Telegram notifiers."""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch


class TestNormalizePhone:
    """Test suite for normalize_phone."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("9876543210", "+919876543210"),
            ("09876543210", "+919876543210"),
            ("919876543210", "+919876543210"),
            ("98765 43210", "+919876543210"),
            ("+14155550100", "+14155550100"),
            ("", ""),
        ],
    )
    def test_normalizes(self, raw, expected):
        from finflux.services.notifications import normalize_phone

        assert normalize_phone(raw) == expected


class TestLowStockMessage:
    """Test suite for the alert text."""

    def test_includes_levels(self):
        from finflux.domain.entities import Product
        from finflux.services.notifications import low_stock_message

        product = Product(id="P1", product_name="Diesel", tank_capacity=12000, current_level=1200)

        text = low_stock_message(product)

        assert "Diesel" in text
        assert "10%" in text
        assert "1,200 L" in text
        assert "12,000 L" in text


class TestSmsNotifier:
    """Test suite for SmsNotifier."""

    @pytest.mark.asyncio
    async def test_sends_to_every_recipient(self):
        from finflux.services.notifications import SmsNotifier

        client = MagicMock()
        client.messages.create.return_value = MagicMock(sid="SM1")

        with patch("finflux.services.notifications.Client", return_value=client):
            notifier = SmsNotifier(recipients=["9876543210", "+14155550100"])
            await notifier.send("Low stock")

        assert client.messages.create.call_count == 2
        first = client.messages.create.call_args_list[0].kwargs
        assert first["to"] == "+919876543210"
        assert first["body"] == "Low stock"

    @pytest.mark.asyncio
    async def test_provider_error_becomes_finflux_error(self):
        from finflux.services.notifications import SmsNotifier
        from finflux.utils.errors import FinfluxError

        client = MagicMock()
        client.messages.create.side_effect = RuntimeError("rejected")

        with patch("finflux.services.notifications.Client", return_value=client):
            notifier = SmsNotifier(recipients=["9876543210"])
            with pytest.raises(FinfluxError) as exc:
                await notifier.send("Low stock")

        assert exc.value.message == "rejected"

    @pytest.mark.asyncio
    async def test_one_failed_recipient_does_not_stop_others(self):
        from finflux.services.notifications import SmsNotifier

        client = MagicMock()
        client.messages.create.side_effect = [RuntimeError("unreachable"), MagicMock(sid="SM2")]

        with patch("finflux.services.notifications.Client", return_value=client):
            notifier = SmsNotifier(recipients=["9876543210", "+14155550100"])
            await notifier.send("Low stock")

        assert client.messages.create.call_count == 2
        assert client.messages.create.call_args_list[1].kwargs["to"] == "+14155550100"

    @pytest.mark.asyncio
    async def test_raises_when_every_recipient_fails(self):
        from finflux.services.notifications import SmsNotifier
        from finflux.utils.errors import NotificationError

        client = MagicMock()
        client.messages.create.side_effect = [RuntimeError("first"), RuntimeError("second")]

        with patch("finflux.services.notifications.Client", return_value=client):
            notifier = SmsNotifier(recipients=["9876543210", "+14155550100"])
            with pytest.raises(NotificationError) as exc:
                await notifier.send("Low stock")

        assert exc.value.message == "first; second"

    @pytest.mark.asyncio
    async def test_no_recipients(self):
        from finflux.services.notifications import SmsNotifier
        from finflux.utils.errors import NotificationError

        with patch("finflux.services.notifications.Client"):
            notifier = SmsNotifier(recipients=[])
            with pytest.raises(NotificationError):
                await notifier.send("Low stock")

    @pytest.mark.asyncio
    async def test_missing_credentials(self):
        from finflux.services.notifications import SmsNotifier
        from finflux.utils.errors import NotificationError

        notifier = SmsNotifier(recipients=["9876543210"])
        notifier.account_sid = ""

        with pytest.raises(NotificationError):
            await notifier.send("Low stock")


class TestTelegramNotifier:
    """Test suite for TelegramNotifier."""

    @pytest.mark.asyncio
    async def test_sends_message(self):
        from finflux.services.notifications import TelegramNotifier

        bot = MagicMock()
        bot.send_message = AsyncMock()

        with patch("finflux.services.notifications.Bot", return_value=bot):
            await TelegramNotifier(token="t", chat_id="42").send("Low stock")

        bot.send_message.assert_awaited_once_with(chat_id="42", text="Low stock")

    @pytest.mark.asyncio
    async def test_telegram_error(self):
        from telegram.error import TelegramError

        from finflux.services.notifications import TelegramNotifier
        from finflux.utils.errors import NotificationError

        bot = MagicMock()
        bot.send_message = AsyncMock(side_effect=TelegramError("chat not found"))

        with patch("finflux.services.notifications.Bot", return_value=bot):
            with pytest.raises(NotificationError):
                await TelegramNotifier(token="t", chat_id="42").send("Low stock")
