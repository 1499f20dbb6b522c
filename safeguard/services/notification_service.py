"""
Alert notification dispatch.

In-app delivery is implicit (the alert row itself). Push goes to every
alert when the worker has a device registered; SMS and email are added
for HIGH and CRITICAL. Channel attempts run concurrently, each bounded
by NOTIFICATION_TIMEOUT_SECONDS, and a failing channel never blocks or
fails the others.
"""

import asyncio
import logging
import os
import smtplib
import socket
import ssl
from datetime import datetime
from email.message import EmailMessage
from functools import partial
from typing import Callable, List, Optional, Sequence

import requests

from safeguard.config import settings
from safeguard.models.alert import NotificationChannel
from safeguard.schemas.scoring import RiskLevel

logger = logging.getLogger(__name__)

ESCALATED_LEVELS = {RiskLevel.HIGH, RiskLevel.CRITICAL}


class NotificationGateway:
    """
    Concrete transports: push and SMS over HTTP gateways, email over SMTP.
    
    Each send method is blocking and raises RuntimeError on failure.
    """
    
    def _post(self, url: str, key: str, body: dict):
        headers = {"Content-Type": "application/json"}
        if key:
            headers["Authorization"] = f"Bearer {key}"
        try:
            response = requests.post(url, json=body, headers=headers, timeout=settings.NOTIFICATION_TIMEOUT_SECONDS)
        except requests.RequestException as e:
            raise RuntimeError(f"NETWORK_ERROR: {e}")
        if not 200 <= response.status_code < 300:
            raise RuntimeError(f"HTTP_{response.status_code}: {response.text[:200]}")
    
    def send_push(self, worker, alert):
        if not settings.PUSH_GATEWAY_URL:
            raise RuntimeError("CONFIG_MISSING: Set PUSH_GATEWAY_URL.")
        self._post(settings.PUSH_GATEWAY_URL, settings.PUSH_GATEWAY_KEY, {
            "tokens": list(worker.device_tokens or []),
            "tag": f"workerId:{worker.worker_id}",
            "title": f"{settings.APP_NAME} Alert - {alert.severity}",
            "body": alert.message,
            "data": {"alertId": alert.id, "severity": alert.severity, "type": alert.type},
        })
    
    def send_sms(self, worker, alert):
        if not worker.phone:
            raise RuntimeError("NO_RECIPIENT: worker has no phone number")
        if not settings.SMS_GATEWAY_URL:
            raise RuntimeError("CONFIG_MISSING: Set SMS_GATEWAY_URL.")
        self._post(settings.SMS_GATEWAY_URL, settings.SMS_GATEWAY_KEY, {
            "from": settings.SMS_SENDER,
            "to": [worker.phone],
            "message": f"{settings.APP_NAME} Alert [{alert.severity}]: {alert.message} View the full report in the app.",
        })
    
    def send_email(self, worker, alert, admin_emails: Sequence[str] = ()):
        recipients = [addr for addr in [worker.email, *admin_emails] if addr]
        if not recipients:
            raise RuntimeError("NO_RECIPIENT: no email address for worker or admins")
        
        subject = f"{settings.APP_NAME} Alert - {alert.severity} Risk Detected - {worker.name}"
        self._send_email(recipients, subject, build_email_text(worker, alert))
    
    def _send_email(self, recipients: List[str], subject: str, text: str):
        # Dev file outbox so alerts keep flowing without SMTP
        if settings.DEV_MAIL_DIR:
            os.makedirs(settings.DEV_MAIL_DIR, exist_ok=True)
            ts = datetime.utcnow().strftime("%Y%m%d-%H%M%S-%f")
            path = os.path.join(settings.DEV_MAIL_DIR, f"{ts}-{recipients[0]}.eml")
            with open(path, "w", encoding="utf-8") as f:
                f.write(f"From: {settings.SMTP_FROM or '<unset>'}\nTo: {', '.join(recipients)}\nSubject: {subject}\n\n{text}\n")
            return
        
        if not (settings.SMTP_HOST and settings.SMTP_USER and settings.SMTP_PASS and settings.SMTP_FROM):
            raise RuntimeError("CONFIG_MISSING: Set SMTP_HOST/USER/PASS/FROM.")
        
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = settings.SMTP_FROM
        msg["To"] = ", ".join(recipients)
        msg.set_content(text)
        
        server = None
        try:
            context = ssl.create_default_context()
            # 465 => SMTPS; anything else => STARTTLS
            if settings.SMTP_PORT == 465:
                server = smtplib.SMTP_SSL(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT, context=context)
            else:
                server = smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT)
                server.starttls(context=context)
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
            server.send_message(msg)
        except smtplib.SMTPAuthenticationError as e:
            raise RuntimeError(f"AUTH_FAILED: {e}")
        except (smtplib.SMTPException, socket.timeout, OSError) as e:
            raise RuntimeError(f"NETWORK_ERROR: {e}")
        finally:
            if server is not None:
                try:
                    server.quit()
                except (smtplib.SMTPException, OSError):
                    pass


def build_email_text(worker, alert) -> str:
    """Plain-text alert report."""
    created = alert.created_at.strftime("%Y-%m-%d %H:%M:%S") if alert.created_at else "-"
    factors = "\n".join(f"- {t}" for t in (alert.risk_factor_types or [])) or "- none recorded"
    return (
        f"{settings.APP_NAME} Worker Safety Alert\n"
        f"==============================\n"
        f"Worker: {worker.name}\n"
        f"Site: {alert.site}\n"
        f"Severity: {alert.severity}\n"
        f"Time: {created} UTC\n\n"
        f"{alert.message}\n\n"
        f"Risk Factors:\n{factors}\n\n"
        f"Please take immediate action and review the full report in the admin dashboard.\n"
    )


_gateway: Optional[NotificationGateway] = None


def get_notification_gateway() -> NotificationGateway:
    """Get or create the shared notification gateway."""
    global _gateway
    if _gateway is None:
        _gateway = NotificationGateway()
    return _gateway


async def _attempt(channel: NotificationChannel, send: Callable, worker_id: str, timeout: float) -> bool:
    """Run one blocking channel send off the event loop. Never raises."""
    loop = asyncio.get_running_loop()
    try:
        outcome = await asyncio.wait_for(loop.run_in_executor(None, send), timeout=timeout)
    except asyncio.TimeoutError:
        logger.error(f"{channel.value} notification timed out after {timeout}s for worker {worker_id}")
        return False
    except Exception as e:
        logger.error(f"{channel.value} notification failed for worker {worker_id}: {e}")
        return False
    
    if outcome is False:
        logger.error(f"{channel.value} notification rejected for worker {worker_id}")
        return False
    logger.info(f"{channel.value} notification sent for worker {worker_id}")
    return True


async def dispatch_alert_notifications(
    worker,
    alert,
    gateway=None,
    admin_emails: Optional[Sequence[str]] = None,
    timeout: Optional[float] = None,
) -> List[str]:
    """
    Fan an alert out to its channels.
    
    Args:
        worker: Object with worker_id, name, email, phone and device_tokens.
        alert: Alert with id, severity, type, message, site and risk_factor_types.
        gateway: Object with blocking send_push / send_sms / send_email
            methods, the shared NotificationGateway when omitted.
        admin_emails: Extra email recipients, settings.ADMIN_ALERT_EMAILS when omitted.
        timeout: Per-channel timeout in seconds.
        
    Returns:
        Channels confirmed sent, in the order in-app, push, sms, email.
    """
    gateway = gateway or get_notification_gateway()
    admin_emails = settings.ADMIN_ALERT_EMAILS if admin_emails is None else admin_emails
    timeout = settings.NOTIFICATION_TIMEOUT_SECONDS if timeout is None else timeout
    
    attempts = []
    if worker.device_tokens:
        attempts.append((NotificationChannel.PUSH, partial(gateway.send_push, worker, alert)))
    if RiskLevel(alert.severity) in ESCALATED_LEVELS:
        attempts.append((NotificationChannel.SMS, partial(gateway.send_sms, worker, alert)))
        attempts.append((NotificationChannel.EMAIL, partial(gateway.send_email, worker, alert, list(admin_emails))))
    
    results = await asyncio.gather(
        *(_attempt(channel, send, worker.worker_id, timeout) for channel, send in attempts)
    )
    
    sent = [NotificationChannel.IN_APP.value]
    sent.extend(channel.value for (channel, _), ok in zip(attempts, results) if ok)
    return sent
