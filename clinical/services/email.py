"""
Email delivery for urgent notifications through Django's mail backend.

Only severities listed in ``settings.NOTIFICATION_EMAIL_SEVERITIES``
(critical and high by default) are mailed, and only to recipients with an
address whose ``email`` preference is on.  A failed send is logged and
leaves ``sent_email`` false; the in-app notification still stands.
"""
from __future__ import annotations

import logging
import smtplib

from django.conf import settings
from django.core.mail import send_mail

from clinical.models import Notification, NotificationPreference

logger = logging.getLogger(__name__)


def _absolute_url(path: str | None) -> str:
    base = settings.FRONTEND_URL.rstrip('/')
    if not path:
        return base
    return f"{base}{path if path.startswith('/') else '/' + path}"


def render_notification_email(notification: Notification) -> tuple[str, str]:
    prefix = '[CRITICAL] ' if notification.severity == 'critical' else ''
    subject = f'{prefix}{notification.title}'
    lines = [notification.title, '']
    if notification.message:
        lines += [notification.message, '']
    if notification.related_patient_id:
        lines.append(f'Patient: {notification.related_patient.name}')
    lines.append(f'Open: {_absolute_url(notification.action_url)}')
    return subject, '\n'.join(lines)


def deliver_notification_email(notification: Notification) -> bool:
    if notification.severity not in settings.NOTIFICATION_EMAIL_SEVERITIES:
        return False
    user = notification.user
    if not user.email:
        return False
    prefs = NotificationPreference.objects.filter(user=user).first()
    if prefs is not None and not prefs.email:
        return False

    subject, body = render_notification_email(notification)
    try:
        send_mail(subject, body, settings.DEFAULT_FROM_EMAIL, [user.email], fail_silently=False)
    except (smtplib.SMTPException, OSError):
        logger.exception('Email delivery failed for notification %s', notification.id)
        return False

    notification.sent_email = True
    notification.save(update_fields=['sent_email'])
    logger.info('Notification %s mailed to user %s', notification.id, user.id)
    return True
