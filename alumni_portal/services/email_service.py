"""
Email Service for the Alumni Portal
===================================
Transactional emails:
- Email verification on signup
- Password reset
- Account approval
- Welcome after onboarding
- Test message for checking the mail setup

Supports both SMTP and SendGrid.
"""

import aiosmtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Optional
from datetime import datetime
import asyncio

from sendgrid import SendGridAPIClient
from sendgrid.helpers.mail import Mail, Email, To, Content

from alumni_portal.core.config import settings
from alumni_portal.core.logging_config import logger


class EmailService:
    """Async email service using SMTP or SendGrid"""

    def __init__(self):
        self.smtp_host = settings.SMTP_HOST
        self.smtp_port = settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER
        self.smtp_password = settings.SMTP_PASSWORD
        self.from_email = settings.EMAIL_FROM
        self.from_name = settings.EMAIL_FROM_NAME
        self.frontend_url = settings.FRONTEND_URL
        self.portal_name = f"{settings.INSTITUTE_NAME} Alumni Portal"
        self.sendgrid_api_key = settings.SENDGRID_API_KEY
        self.use_sendgrid = settings.USE_SENDGRID and bool(self.sendgrid_api_key)

    @property
    def is_configured(self) -> bool:
        """Check if email service is properly configured"""
        if self.use_sendgrid:
            return bool(self.sendgrid_api_key)
        return bool(self.smtp_user and self.smtp_password)

    @property
    def transport(self) -> str:
        return "sendgrid" if self.use_sendgrid else "smtp"

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """
        Send an email asynchronously.

        Returns True if successful, False otherwise.
        """
        if not self.is_configured:
            logger.warning(f"[Email] Email service not configured, skipping email to {to_email}: {subject}")
            return False

        if self.use_sendgrid:
            return await self._send_via_sendgrid(to_email, subject, html_content, text_content)
        return await self._send_via_smtp(to_email, subject, html_content, text_content)

    async def _send_via_sendgrid(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SendGrid API"""
        try:
            message = Mail(
                from_email=Email(self.from_email, self.from_name),
                to_emails=To(to_email),
                subject=subject,
                html_content=Content("text/html", html_content)
            )

            if text_content:
                message.add_content(Content("text/plain", text_content))

            sg = SendGridAPIClient(self.sendgrid_api_key)
            # SendGrid client is synchronous
            loop = asyncio.get_event_loop()
            response = await loop.run_in_executor(None, sg.send, message)

            if response.status_code in [200, 201, 202]:
                logger.info(f"[Email/SendGrid] Sent email to {to_email}: {subject}")
                return True
            logger.error(f"[Email/SendGrid] Failed with status {response.status_code}: {response.body}")
            return False

        except Exception as e:
            logger.error(f"[Email/SendGrid] Failed to send email to {to_email}: {e}")
            return False

    async def _send_via_smtp(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None
    ) -> bool:
        """Send email via SMTP"""
        try:
            message = MIMEMultipart("alternative")
            message["From"] = f"{self.from_name} <{self.from_email}>"
            message["To"] = to_email
            message["Subject"] = subject

            # multipart/alternative: plain text, then HTML
            if text_content:
                message.attach(MIMEText(text_content, "plain"))
            message.attach(MIMEText(html_content, "html"))

            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user,
                password=self.smtp_password,
                start_tls=True
            )

            logger.info(f"[Email/SMTP] Sent email to {to_email}: {subject}")
            return True

        except Exception as e:
            logger.error(f"[Email/SMTP] Failed to send email to {to_email}: {e}")
            return False

    def _render(self, heading: str, greeting_name: Optional[str], body_html: str,
                button_text: Optional[str] = None, button_link: Optional[str] = None,
                footer_note: str = "") -> str:
        button = ""
        if button_text and button_link:
            button = f"""
                    <p style="text-align: center;">
                        <a href="{button_link}" class="button">{button_text}</a>
                    </p>
                    <p style="font-size: 14px; color: #6b7280;">
                        Or copy and paste this link in your browser:<br>
                        <code style="background: #e5e7eb; padding: 4px 8px; border-radius: 4px; word-break: break-all;">{button_link}</code>
                    </p>"""

        return f"""
        <!DOCTYPE html>
        <html>
        <head>
            <style>
                body {{ font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif; line-height: 1.6; color: #333; }}
                .container {{ max-width: 600px; margin: 0 auto; padding: 20px; }}
                .header {{ background: #1e3a8a; color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; }}
                .content {{ background: #f9fafb; padding: 30px; border-radius: 0 0 10px 10px; }}
                .button {{ display: inline-block; background: #1e40af; color: white; padding: 14px 28px; text-decoration: none; border-radius: 8px; font-weight: 600; margin: 20px 0; }}
                .footer {{ text-align: center; margin-top: 30px; font-size: 12px; color: #6b7280; }}
            </style>
        </head>
        <body>
            <div class="container">
                <div class="header">
                    <h1>{heading}</h1>
                </div>
                <div class="content">
                    <p>Hi {greeting_name or 'there'},</p>
                    {body_html}
                    {button}
                </div>
                <div class="footer">
                    <p>&copy; {datetime.utcnow().year} {self.portal_name}</p>
                    <p>{footer_note}</p>
                </div>
            </div>
        </body>
        </html>
        """

    async def send_verification_email(
        self,
        to_email: str,
        user_name: Optional[str],
        verification_token: str
    ) -> bool:
        """Send email verification link to new user"""
        verification_link = f"{self.frontend_url}/verify-email?token={verification_token}"
        subject = f"Verify Your Email - {self.portal_name}"

        html_content = self._render(
            f"Welcome to the {self.portal_name}!",
            user_name,
            "<p>Thanks for registering. Please verify your email address to activate your account.</p>"
            f"<p style=\"font-size: 14px; color: #6b7280;\">This link will expire in {settings.EMAIL_VERIFICATION_EXPIRE_HOURS} hours.</p>",
            "Verify Email Address",
            verification_link,
            "If you didn't create an account, please ignore this email.",
        )
        text_content = (
            f"Hi {user_name or 'there'},\n\n"
            f"Please verify your email address: {verification_link}\n\n"
            f"This link will expire in {settings.EMAIL_VERIFICATION_EXPIRE_HOURS} hours.\n\n"
            f"- {self.portal_name}"
        )
        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_password_reset_email(
        self,
        to_email: str,
        user_name: Optional[str],
        reset_token: str
    ) -> bool:
        """Send password reset link"""
        reset_link = f"{self.frontend_url}/reset-password?token={reset_token}"
        subject = f"Reset Your Password - {self.portal_name}"

        html_content = self._render(
            "Password Reset",
            user_name,
            "<p>We received a request to reset your password. Click the button below to choose a new one.</p>"
            f"<p style=\"font-size: 14px; color: #6b7280;\">This link will expire in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.</p>",
            "Reset Password",
            reset_link,
            "If you didn't request a password reset, you can ignore this email.",
        )
        text_content = (
            f"Hi {user_name or 'there'},\n\n"
            f"Reset your password here: {reset_link}\n\n"
            f"This link will expire in {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.\n\n"
            f"- {self.portal_name}"
        )
        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_approval_email(self, to_email: str, user_name: Optional[str]) -> bool:
        """Tell a user an administrator approved their account"""
        login_link = f"{self.frontend_url}/login"
        subject = f"Your account has been approved - {self.portal_name}"

        html_content = self._render(
            "Account Approved",
            user_name,
            "<p>Your alumni account has been approved. Your profile is now visible in the alumni directory.</p>",
            "Log In",
            login_link,
        )
        text_content = (
            f"Hi {user_name or 'there'},\n\n"
            f"Your alumni account has been approved. Log in at {login_link}\n\n"
            f"- {self.portal_name}"
        )
        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_welcome_email(self, to_email: str, user_name: Optional[str]) -> bool:
        """Send welcome email once the profile has been set up"""
        dashboard_link = f"{self.frontend_url}/dashboard"
        subject = f"Welcome to the {self.portal_name}!"

        html_content = self._render(
            f"Welcome to the {self.portal_name}!",
            user_name,
            "<p>Your profile is all set. Here's what you can do:</p>"
            "<ul>"
            "<li>Find batchmates and alumni working in your field</li>"
            "<li>Stay up to date with institute news</li>"
            "<li>Register for alumni meets, webinars and workshops</li>"
            "</ul>",
            "Go to Dashboard",
            dashboard_link,
        )
        text_content = (
            f"Hi {user_name or 'there'},\n\n"
            f"Your profile is all set. Visit your dashboard: {dashboard_link}\n\n"
            f"- {self.portal_name}"
        )
        return await self.send_email(to_email, subject, html_content, text_content)

    async def send_test_email(self, to_email: str) -> bool:
        """Send a short message to check the mail configuration"""
        sent_at = datetime.utcnow().isoformat(timespec="seconds")
        subject = f"Test Email - {self.portal_name}"

        html_content = self._render(
            "Email Configuration Test",
            None,
            f"<p>This is a test email sent via <strong>{self.transport}</strong> at {sent_at} UTC.</p>"
            "<p>If you are reading this, email delivery is working.</p>",
        )
        text_content = f"This is a test email sent via {self.transport} at {sent_at} UTC."
        return await self.send_email(to_email, subject, html_content, text_content)


# Singleton instance
email_service = EmailService()
