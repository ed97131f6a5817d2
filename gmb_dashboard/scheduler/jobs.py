"""GMB Dashboard: Scheduler Jobs.

APScheduler monthly job that emails each subscribed user a summary of the
latest month within their own scope.
"""

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from sqlmodel import Session, select

from gmb_dashboard.analyzer.kpi_engine import aggregate_metrics
from gmb_dashboard.config import settings
from gmb_dashboard.core.months import in_period, latest_period
from gmb_dashboard.database import engine
from gmb_dashboard.models.document_models import MonthlyInsight, UserAccount
from gmb_dashboard.repositories.scoped import ScopedRepository
from gmb_dashboard.services.auth_service import principal_for
from gmb_dashboard.services.mailer import Mailer, render_monthly_report
from gmb_dashboard.core.logging import get_logger

logger = get_logger("scheduler")

scheduler = AsyncIOScheduler()


def send_monthly_reports(session: Session, mailer: Mailer) -> int:
    """Email the report to every subscribed user. Returns the number sent."""
    users = session.exec(
        select(UserAccount).where(UserAccount.notify_monthly_report == True)  # noqa: E712
    ).all()

    sent = 0
    for user in users:
        recipient = user.mail or user.org_email
        try:
            principal = principal_for(user)
            insights = ScopedRepository(session, principal.scope).find(MonthlyInsight)
            period = latest_period(insights)
            month = period[0]
            metrics = aggregate_metrics([r for r in insights if in_period(r, period)])
            mailer.send(
                recipient,
                f"GMB monthly report: {month}",
                render_monthly_report(user.user, month, metrics),
            )
            sent += 1
        except Exception as e:
            logger.error(f"Monthly report for {recipient} failed: {e}", extra={"user": recipient})

    logger.info(f"Monthly reports sent: {sent}/{len(users)}")
    return sent


async def monthly_report_job():
    """Send the monthly report emails."""
    logger.info("Scheduled monthly report starting...")
    try:
        with Session(engine) as session:
            send_monthly_reports(session, Mailer())
    except Exception as e:
        logger.error(f"Scheduled monthly report failed: {e}")


def start_scheduler():
    """Configure and start the scheduler."""
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled via config")
        return

    scheduler.add_job(
        monthly_report_job,
        "cron",
        day=settings.monthly_report_day,
        hour=settings.monthly_report_hour,
        minute=0,
        id="monthly_report",
        replace_existing=True,
        misfire_grace_time=3600,
    )
    scheduler.start()
    logger.info(
        f"Scheduler started. Monthly report on day {settings.monthly_report_day} "
        f"at {settings.monthly_report_hour}:00 UTC"
    )


def stop_scheduler():
    """Shutdown the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
