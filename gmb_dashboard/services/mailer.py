"""GMB Dashboard: Transactional Email.

HTML mail over SMTP for one-time codes, password resets and the monthly
report. Delivery is attempted once; failures surface to the caller.
"""

import smtplib
from email.message import EmailMessage
from string import Template

from gmb_dashboard.config import settings
from gmb_dashboard.models.report_models import AggregatedMetrics
from gmb_dashboard.core.logging import get_logger

logger = get_logger("mailer")


class MailDeliveryError(Exception):
    """Raised when the SMTP server refuses or cannot be reached."""


_LAYOUT = Template(
    """<html>
  <body style="font-family: Arial, sans-serif; color: #1f2937;">
    <div style="max-width: 520px; margin: 0 auto; padding: 24px;">
      <h2 style="color: #0f766e;">$title</h2>
      <p>Hello $name,</p>
      $body
      <p style="font-size: 12px; color: #6b7280;">
        This is an automated message from the GMB Insights dashboard.
      </p>
    </div>
  </body>
</html>"""
)

_OTP_BODY = Template(
    """<p>Your one-time login code is:</p>
      <p style="font-size: 28px; letter-spacing: 6px; font-weight: bold;">$otp</p>
      <p>The code expires in $ttl minutes.</p>"""
)

_RESET_BODY = Template(
    """<p>We received a request to reset your dashboard password.</p>
      <p><a href="$link" style="background: #0f766e; color: #fff; padding: 10px 18px;
         border-radius: 6px; text-decoration: none;">Reset password</a></p>
      <p>The link expires in $ttl minutes. If you did not ask for this, ignore this email.</p>"""
)

_REPORT_BODY = Template(
    """<p>Here is the Google Business Profile summary for <b>$month</b>:</p>
      <table cellpadding="6" style="border-collapse: collapse;">
        <tr><td>Search impressions</td><td><b>$search</b></td></tr>
        <tr><td>Maps views</td><td><b>$maps</b></td></tr>
        <tr><td>Direction requests</td><td><b>$directions</b></td></tr>
        <tr><td>Website clicks</td><td><b>$website</b></td></tr>
        <tr><td>Calls</td><td><b>$calls</b></td></tr>
        <tr><td>Average rating</td><td><b>$rating</b></td></tr>
      </table>"""
)


def render_otp_email(name: str, otp: str, ttl_minutes: int) -> str:
    body = _OTP_BODY.substitute(otp=otp, ttl=ttl_minutes)
    return _LAYOUT.substitute(title="Your login code", name=name or "there", body=body)


def render_reset_email(name: str, link: str, ttl_minutes: int) -> str:
    body = _RESET_BODY.substitute(link=link, ttl=ttl_minutes)
    return _LAYOUT.substitute(title="Reset your password", name=name or "there", body=body)


def render_monthly_report(name: str, month: str, metrics: AggregatedMetrics) -> str:
    body = _REPORT_BODY.substitute(
        month=month,
        search=f"{metrics.total_search_impressions:,}",
        maps=f"{metrics.total_maps_views:,}",
        directions=f"{metrics.total_directions:,}",
        website=f"{metrics.total_website_clicks:,}",
        calls=f"{metrics.total_calls:,}",
        rating=f"{metrics.average_rating:.1f}",
    )
    return _LAYOUT.substitute(title=f"Monthly report: {month}", name=name or "there", body=body)


class Mailer:
    """Sends HTML email through the configured SMTP server."""

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool | None = None,
        sender: str | None = None,
    ):
        self.host = host or settings.smtp_host
        self.port = port or settings.smtp_port
        self.username = username if username is not None else settings.smtp_username
        self.password = password if password is not None else settings.smtp_password
        self.use_tls = settings.smtp_use_tls if use_tls is None else use_tls
        self.sender = sender or settings.mail_from

    def _build(self, to: str, subject: str, html: str) -> EmailMessage:
        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg.set_content("This message requires an HTML capable mail client.")
        msg.add_alternative(html, subtype="html")
        return msg

    def send(self, to: str, subject: str, html: str) -> None:
        msg = self._build(to, subject, html)
        try:
            with smtplib.SMTP(self.host, self.port, timeout=30) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password or "")
                smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Email to {to} failed: {e}", extra={"user": to})
            raise MailDeliveryError(str(e)) from e
        logger.info(f"Email '{subject}' sent", extra={"user": to})


def get_mailer() -> Mailer:
    """Dependency: the process mailer."""
    return Mailer()
