"""Tests for password reset email delivery."""
import logging

import pytest

from closecircle.domain.common.errors import UpstreamError
from closecircle.infra.messaging.email_base import ConsoleEmailService, SendGridEmailService


def _sendgrid(monkeypatch, outcome):
    service = SendGridEmailService(api_key="SG.test", from_email="noreply@closecircle.app", from_name="Close Circle")
    sent = []

    def fake_send(message):
        sent.append(message)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(service, "_send", fake_send)
    return service, sent


async def test_console_service_logs_link(caplog):
    with caplog.at_level(logging.INFO):
        await ConsoleEmailService().send_password_reset("a@example.com", "Alice", "http://x/reset-password/t")
    assert "http://x/reset-password/t" in caplog.text


async def test_sendgrid_accepted(monkeypatch):
    service, sent = _sendgrid(monkeypatch, 202)
    await service.send_password_reset("a@example.com", "Alice", "http://x/reset-password/t")
    assert len(sent) == 1
    body = str(sent[0].get())
    assert "http://x/reset-password/t" in body
    assert "a@example.com" in body


@pytest.mark.parametrize("outcome", [500, RuntimeError("network down")])
async def test_sendgrid_failure_is_upstream(monkeypatch, outcome):
    service, _ = _sendgrid(monkeypatch, outcome)
    with pytest.raises(UpstreamError):
        await service.send_password_reset("a@example.com", "Alice", "http://x/reset-password/t")
