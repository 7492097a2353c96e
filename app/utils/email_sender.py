import logging
import sib_api_v3_sdk
from sib_api_v3_sdk.rest import ApiException
from fastapi import HTTPException, status
from starlette.concurrency import run_in_threadpool

from app.core.config import settings

logger = logging.getLogger(__name__)

async def send_brevo_email(to_email: str, subject: str, html_content: str):
    """
    Sends a transactional email using Brevo API.
    """
    configuration = sib_api_v3_sdk.Configuration()
    configuration.api_key['api-key'] = settings.BREVO_API_KEY

    api_client = sib_api_v3_sdk.ApiClient(configuration)
    transactional_api = sib_api_v3_sdk.TransactionalEmailsApi(api_client)

    send_smtp_email = sib_api_v3_sdk.SendSmtpEmail(
        to=[{"email": to_email, "name": to_email}],
        subject=subject,
        html_content=html_content,
        sender={"email": settings.DEFAULT_SENDER_EMAIL, "name": settings.APP_NAME},
    )

    try:
        # The Brevo SDK is synchronous
        response = await run_in_threadpool(transactional_api.send_transac_email, send_smtp_email)
        logger.info(f"Email sent successfully to {to_email}. Response: {response}")
    except ApiException as e:
        logger.error(f"Exception when calling Brevo API to send email to {to_email}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to send email: {e.reason}"
        )
