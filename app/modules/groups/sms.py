from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient
from app.config import settings
from app.core.errors import DependencyError
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class TwilioSmsSender:
    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        if not all([account_sid, auth_token, from_number]):
            raise ValueError("Twilio account SID, auth token and sender number must be configured")
        self.client = TwilioClient(account_sid, auth_token)
        self.from_number = from_number

    def send(self, to: str, body: str) -> str:
        """Send one SMS and return the provider message SID"""
        try:
            message = self.client.messages.create(body=body, from_=self.from_number, to=to)
            return message.sid
        except TwilioException as e:
            logger.error(f"Failed to send SMS to {to}: {str(e)}")
            raise DependencyError("SMS delivery failed")


def get_sms_sender() -> Optional[TwilioSmsSender]:
    """SMS sender from settings, or None when Twilio is not configured"""
    try:
        return TwilioSmsSender(
            settings.twilio_account_sid, settings.twilio_auth_token, settings.twilio_phone
        )
    except ValueError as e:
        logger.warning("SMS invites disabled: %s", e)
        return None
