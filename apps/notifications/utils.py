import logging
import re
from django.conf import settings
from django.core.mail import send_mail
from twilio.base.exceptions import TwilioRestException
from twilio.rest import Client as TwilioClient

logger = logging.getLogger(__name__)


def send_notification(user, subject, email_message, sms_message):
    """
    Send a notification to a user via email and SMS.

    Delivery is best-effort: failures are logged and never raised, the stored
    Notification row is the record of truth.

    Args:
        user: User object to send notification to
        subject: Email subject
        email_message: Email message content
        sms_message: SMS message content
    """
    if user.email:
        try:
            send_mail(
                subject=subject,
                message=email_message,
                from_email=settings.DEFAULT_FROM_EMAIL,
                recipient_list=[user.email],
                fail_silently=False,
            )
            logger.info(f"Email notification sent to user {user.id}")
        except Exception as e:
            logger.error(f"Failed to send email to {user.email}: {str(e)}")

    if not user.phone_number:
        return
    if not re.match(r'^\+\d{9,15}$', user.phone_number):
        logger.warning(f"Invalid phone number format for user {user.id}: {user.phone_number}")
        return
    if not settings.TWILIO_ACCOUNT_SID:
        logger.warning(f"Twilio is not configured, skipping SMS to user {user.id}")
        return
    try:
        twilio_client = TwilioClient(settings.TWILIO_ACCOUNT_SID, settings.TWILIO_AUTH_TOKEN)
        twilio_client.messages.create(
            body=sms_message,
            from_=settings.TWILIO_PHONE_NUMBER,
            to=user.phone_number
        )
        logger.info(f"SMS notification sent to user {user.id}")
    except TwilioRestException as e:
        logger.error(f"Failed to send SMS to {user.phone_number}: {str(e)}")
    except Exception as e:
        logger.error(f"SMS delivery to {user.phone_number} failed: {str(e)}")


def deliver_externally(notification):
    """Runs after commit; errors are logged, never raised."""
    try:
        user = notification.recipient
        email_message = (
            f"Dear {user.first_name or user.username},\n\n"
            f"{notification.body}\n\n"
            f"Best regards,\nGigBridge Team"
        )
        send_notification(user, notification.title, email_message, f"{notification.title}: {notification.body}")
    except Exception as e:
        logger.error(f"Failed to deliver notification {notification.id}: {str(e)}")
