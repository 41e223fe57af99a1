"""Post-registration e-mails and skill alerts.

Everything here is best effort: a failing e-mail never fails the
registration that triggered it.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ai.functions import FunctionInvocationError, FunctionsClient
from matchwise import models
from matchwise.config import settings
from matchwise.schemas import SkillAlertCreate
from matchwise.scoring import find_matched_skills

logger = logging.getLogger(__name__)


@dataclass
class SkillAlertReport:
    """Counts from one skill-alert check."""
    alerts_checked: int = 0
    matches_found: int = 0
    emails_sent: int = 0


@dataclass
class NotificationReport:
    """What was sent after a consultant registered."""
    welcome_email_sent: bool = False
    admin_notified: bool = False
    skill_alerts: SkillAlertReport = field(default_factory=SkillAlertReport)


def alert_payload(consultant: models.Consultant) -> dict:
    """Consultant summary sent with a skill alert."""
    return {
        "id": consultant.id,
        "name": consultant.name,
        "title": consultant.title,
        "location": consultant.location,
        "skills": list(consultant.skills or []),
        "experience": consultant.experience,
        "availability": consultant.availability,
        "linkedin_url": consultant.linkedin_url,
    }


async def create_skill_alert(session: AsyncSession, data: SkillAlertCreate) -> models.SkillAlert:
    alert = models.SkillAlert(email=data.email, skills=data.skills, active=True)
    session.add(alert)
    await session.commit()
    await session.refresh(alert)
    logger.info(f"Skill alert {alert.id} created for {len(alert.skills)} skills")
    return alert


async def send_registration_emails(
    functions: FunctionsClient,
    consultant: models.Consultant,
    *,
    is_my_consultant: bool = False,
) -> tuple[bool, bool]:
    """Send the welcome e-mail and the admin notification.

    Returns:
        (welcome_sent, admin_notified)
    """
    welcome_sent = admin_notified = False

    if settings.notifications.welcome_email:
        try:
            await functions.send_welcome_email(
                consultant.email,
                consultant.name,
                is_my_consultant=is_my_consultant,
            )
            welcome_sent = True
        except FunctionInvocationError as e:
            logger.warning(f"Welcome e-mail to consultant {consultant.id} failed: {e}")

    if settings.notifications.admin_notification:
        try:
            await functions.send_registration_notification(
                consultant.name,
                consultant.email,
                is_my_consultant=is_my_consultant,
            )
            admin_notified = True
        except FunctionInvocationError as e:
            logger.warning(f"Registration notification for consultant {consultant.id} failed: {e}")

    return welcome_sent, admin_notified


async def check_skill_alerts(
    session: AsyncSession,
    functions: FunctionsClient,
    consultant: models.Consultant,
) -> SkillAlertReport:
    """Notify every active alert whose skills overlap the consultant's."""
    report = SkillAlertReport()
    if not settings.notifications.skill_alerts:
        return report

    result = await session.execute(
        select(models.SkillAlert)
        .where(models.SkillAlert.active.is_(True))
        .order_by(models.SkillAlert.id)
    )
    alerts = result.scalars().all()
    report.alerts_checked = len(alerts)
    payload = alert_payload(consultant)

    for alert in alerts:
        matching = find_matched_skills(alert.skills or [], consultant.skills or [])
        if not matching:
            continue
        report.matches_found += 1
        try:
            await functions.send_skill_alert(payload, matching, alert.email)
            report.emails_sent += 1
        except FunctionInvocationError as e:
            logger.warning(f"Skill alert {alert.id} to {alert.email} failed: {e}")

    logger.info(
        f"Skill alerts for consultant {consultant.id}: "
        f"{report.matches_found}/{report.alerts_checked} matched, {report.emails_sent} sent"
    )
    return report


async def notify_new_consultant(
    session: AsyncSession,
    functions: FunctionsClient,
    consultant: models.Consultant,
    *,
    is_my_consultant: bool = False,
) -> NotificationReport:
    welcome_sent, admin_notified = await send_registration_emails(
        functions,
        consultant,
        is_my_consultant=is_my_consultant,
    )
    # The consultant is already committed; nothing below may fail the registration
    try:
        alerts = await check_skill_alerts(session, functions, consultant)
    except Exception as e:
        logger.warning(f"Skill alert check for consultant {consultant.id} failed: {e}", exc_info=True)
        alerts = SkillAlertReport()
    return NotificationReport(
        welcome_email_sent=welcome_sent,
        admin_notified=admin_notified,
        skill_alerts=alerts,
    )
