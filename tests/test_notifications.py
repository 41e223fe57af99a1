"""Tests for registration e-mails and skill alerts."""
from conftest import add_consultant
from matchwise import models
from matchwise.config import settings
from matchwise.pipelines.notifications import (
    check_skill_alerts,
    create_skill_alert,
    notify_new_consultant,
    send_registration_emails,
)
from matchwise.schemas import SkillAlertCreate


async def _alert(session, email, skills, active=True):
    alert = models.SkillAlert(email=email, skills=skills, active=active)
    session.add(alert)
    await session.commit()
    return alert


async def test_skill_alerts_match_substrings_either_way(session, functions, fake_functions):
    consultant = await add_consultant(session, skills=["React Native", "TypeScript"])
    await _alert(session, "frontend@example.com", ["react"])
    await _alert(session, "data@example.com", ["Python"])
    await _alert(session, "paused@example.com", ["TypeScript"], active=False)

    report = await check_skill_alerts(session, functions, consultant)

    assert report.alerts_checked == 2
    assert report.matches_found == 1
    assert report.emails_sent == 1
    name, payload = fake_functions.calls[0]
    assert name == "send-skill-alert"
    assert payload["subscriberEmail"] == "frontend@example.com"
    assert payload["matchingSkills"] == ["react"]
    assert payload["consultant"]["name"] == consultant.name


async def test_failed_alert_is_skipped(session, functions, fake_functions):
    consultant = await add_consultant(session, skills=["Java"])
    await _alert(session, "one@example.com", ["Java"])
    await _alert(session, "two@example.com", ["java"])
    fake_functions.respond("send-skill-alert", {"success": False, "error": "bounced"})

    report = await check_skill_alerts(session, functions, consultant)

    assert report.matches_found == 2
    assert report.emails_sent == 0
    assert fake_functions.names() == ["send-skill-alert", "send-skill-alert"]


async def test_notifications_respect_flags(session, functions, fake_functions, monkeypatch):
    monkeypatch.setattr(settings.notifications, "welcome_email", False)
    monkeypatch.setattr(settings.notifications, "skill_alerts", False)
    consultant = await add_consultant(session)
    await _alert(session, "lead@example.com", ["React"])

    report = await notify_new_consultant(session, functions, consultant, is_my_consultant=True)

    assert not report.welcome_email_sent
    assert report.admin_notified
    assert report.skill_alerts.alerts_checked == 0
    assert fake_functions.calls == [
        ("send-registration-notification", {
            "consultantName": consultant.name,
            "consultantEmail": consultant.email,
            "isMyConsultant": True,
        }),
    ]


async def test_send_registration_emails_swallow_errors(session, functions, fake_functions):
    consultant = await add_consultant(session)
    fake_functions.respond("send-welcome-email", {"error": "down"}, status_code=503)
    fake_functions.respond("send-registration-notification", {"error": "down"}, status_code=503)

    assert await send_registration_emails(functions, consultant) == (False, False)


async def test_create_skill_alert(session):
    alert = await create_skill_alert(
        session,
        SkillAlertCreate(email="lead@example.com", skills="React, react, AWS"),
    )
    assert alert.id is not None
    assert alert.skills == ["React", "AWS"]
    assert alert.active


async def test_alert_lookup_failure_does_not_fail_notification(engine, session, functions, fake_functions):
    consultant = await add_consultant(session)
    async with engine.begin() as conn:
        await conn.run_sync(models.SkillAlert.__table__.drop)

    report = await notify_new_consultant(session, functions, consultant)

    assert report.welcome_email_sent
    assert report.admin_notified
    assert report.skill_alerts.alerts_checked == 0
    assert report.skill_alerts.emails_sent == 0
