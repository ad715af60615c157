"""ZeptoMail implementation of EmailProvider.

Each message has an HTML and a plain-text Jinja2 template under
templates/emails/ (``<name>.html`` / ``<name>.txt``). Delivery failures are
logged and reported as ``False``, never raised.
"""

import os
from typing import Any, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import EmailSettings
from infrastructure.http_client import HttpClient
from shared.logging import get_logger

log = get_logger(__name__)

_ZEPTO_API_URL = "https://api.zeptomail.com/v1.1/email"
_AUTH_PREFIX = "Zoho-enczapikey "
_DEFAULT_TEMPLATE_DIR = os.path.join(
    os.path.dirname(os.path.dirname(os.path.dirname(__file__))),
    "templates",
    "emails",
)


class ZeptoMailProvider:
    def __init__(
        self,
        settings: EmailSettings,
        http_client: HttpClient,
        app_name: str = "Dire Dawa Tutoring",
        otp_ttl_minutes: int = 10,
        reset_ttl_minutes: int = 60,
        template_dir: str = _DEFAULT_TEMPLATE_DIR,
    ) -> None:
        self._settings = settings
        self._http = http_client
        self._app_name = app_name
        self._otp_ttl_minutes = otp_ttl_minutes
        self._reset_ttl_minutes = reset_ttl_minutes
        self._jinja = Environment(
            loader=FileSystemLoader(template_dir),
            autoescape=select_autoescape(["html", "xml"]),
        )

    def _authorization(self) -> str:
        token = self._settings.zepto_api_token
        return token if token.startswith(_AUTH_PREFIX) else _AUTH_PREFIX + token

    def _render(self, name: str, **context: Any) -> tuple[str, str]:
        context.setdefault("app_name", self._app_name)
        html = self._jinja.get_template(f"{name}.html").render(**context)
        text = self._jinja.get_template(f"{name}.txt").render(**context)
        return html, text

    async def _deliver(
        self,
        kind: str,
        to_email: str,
        to_name: Optional[str],
        subject: str,
        bodies: tuple[str, str],
    ) -> bool:
        if not self._settings.zepto_api_token:
            log.error("email_not_sent", kind=kind, reason="token_not_configured")
            return False

        html_body, text_body = bodies
        payload = {
            "from": {
                "address": self._settings.zepto_from_email,
                "name": self._settings.zepto_from_name,
            },
            "to": [{"email_address": {"address": to_email, "name": to_name or to_email}}],
            "subject": subject,
            "htmlbody": html_body,
            "textbody": text_body,
        }
        headers = {
            "Authorization": self._authorization(),
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.post(_ZEPTO_API_URL, json=payload, headers=headers)
        except Exception as e:
            log.error(
                "email_send_error",
                kind=kind,
                error=str(e),
                error_type=type(e).__name__,
            )
            return False

        if response.status_code not in (200, 201, 202):
            log.error(
                "email_rejected",
                kind=kind,
                status_code=response.status_code,
                response=response.text[:200],
            )
            return False

        log.info("email_sent", kind=kind)
        return True

    async def send_verification_email(
        self, email: str, user_name: Optional[str], otp_code: str
    ) -> bool:
        bodies = self._render(
            "verification",
            otp_code=otp_code,
            user_name=user_name,
            ttl_minutes=self._otp_ttl_minutes,
        )
        subject = f"Verify your {self._app_name} account"
        return await self._deliver("verification", email, user_name, subject, bodies)

    async def send_welcome_email(self, email: str, user_name: Optional[str]) -> bool:
        bodies = self._render("welcome", user_name=user_name)
        subject = f"Welcome to {self._app_name}!"
        return await self._deliver("welcome", email, user_name, subject, bodies)

    async def send_password_reset_email(
        self, email: str, user_name: Optional[str], reset_url: str
    ) -> bool:
        bodies = self._render(
            "password_reset",
            reset_url=reset_url,
            user_name=user_name,
            ttl_minutes=self._reset_ttl_minutes,
        )
        subject = f"Reset your {self._app_name} password"
        return await self._deliver("password_reset", email, user_name, subject, bodies)
