"""
Email delivery through the SendGrid v3 Mail Send API.
"""
import base64
import logging
from typing import Optional

import httpx

from jobhunter.core import config
from jobhunter.core.errors import GatewayError, ValidationError

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class SendGridClient:
    def __init__(
        self,
        api_key: Optional[str],
        from_email: str,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ValidationError("SENDGRID_API_KEY not configured")
        self.api_key = api_key
        self.from_email = from_email
        self._http = http_client

    async def send(
        self,
        to_email: str,
        subject: str,
        body: str,
        reply_to: Optional[str] = None,
        from_name: Optional[str] = None,
        attachment: Optional[tuple] = None,
    ) -> Optional[str]:
        """
        Send a plain-text email.

        Args:
            attachment: Optional ``(filename, mime_type, bytes)``

        Returns:
            SendGrid message id, when the API reports one

        Raises:
            GatewayError: On any non-2xx response
        """
        sender = {"email": self.from_email}
        if from_name:
            sender["name"] = from_name
        payload = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": sender,
            "subject": subject,
            "content": [{"type": "text/plain", "value": body}],
        }
        if reply_to:
            payload["reply_to"] = {"email": reply_to}
        if attachment:
            filename, mime_type, data = attachment
            payload["attachments"] = [{
                "content": base64.b64encode(data).decode("ascii"),
                "filename": filename,
                "type": mime_type,
                "disposition": "attachment",
            }]

        client = self._http or httpx.AsyncClient(timeout=config.HTTP_TIMEOUT_SECONDS)
        try:
            response = await client.post(
                SENDGRID_SEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"SendGrid request failed: {e}")
            raise GatewayError("SendGrid", 503, str(e))
        finally:
            if self._http is None:
                await client.aclose()

        if response.status_code >= 400:
            logger.error(f"SendGrid error: status={response.status_code}, body={response.text}")
            raise GatewayError("SendGrid", response.status_code, response.text)

        message_id = response.headers.get("X-Message-Id")
        logger.info(f"Email sent via SendGrid: message_id={message_id}")
        return message_id


def get_mailer() -> SendGridClient:
    """Dependency: configured SendGrid client."""
    return SendGridClient(config.SENDGRID_API_KEY, config.SENDGRID_FROM_EMAIL)
