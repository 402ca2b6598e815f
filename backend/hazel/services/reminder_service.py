# Overview: Service-layer operations for reservation reminders; encapsulates business logic and database work.

"""
Reminder Service

Two scheduled jobs (run from cron routes or the CLI):

- Daily (morning): one summary push of today's reservations, then one push per
  reservation whose advance `reminder_date` is today. Each advance reminder's
  `reminder_date` is cleared once sent so a re-run does not repeat it.
- Scheduled (hourly): one push per reservation whose exact `reminder_at` fell
  within the last hour, then `reminder_at` is cleared.

Cancelled and completed reservations never get reminders.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import case

from ..extensions import db
from ..models import Reservation
from . import push_service
from hazel.time_utils import local_today, utcnow

logger = logging.getLogger(__name__)

SUMMARY_LINES = 3
CALENDAR_URL = "/calendar"
SCHEDULED_WINDOW = timedelta(hours=1)
INACTIVE_STATUSES = ("cancelled", "completed")


def _time_ordering():
    return (case((Reservation.time.is_(None), 1), else_=0), Reservation.time.asc(), Reservation.id.asc())


def _summary_body(reservations: list[Reservation]) -> str:
    lines = []
    for reservation in reservations[:SUMMARY_LINES]:
        time_label = reservation.time[:5] if reservation.time else "--:--"
        line = f"{time_label} {reservation.title}"
        if reservation.customer_name:
            line += f" ({reservation.customer_name})"
        lines.append(line)
    if len(reservations) > SUMMARY_LINES:
        lines.append(f"외 {len(reservations) - SUMMARY_LINES}건")
    return "\n".join(lines)


def _date_label(reservation_date: date, today: date) -> str:
    days_until = (reservation_date - today).days
    if days_until <= 0:
        return "오늘"
    if days_until == 1:
        return "내일"
    return f"{days_until}일 후"


def reminder_payload(reservation: Reservation, today: date) -> dict:
    lines = [f"{_date_label(reservation.date, today)} ({reservation.date.isoformat()})"]
    if reservation.time:
        lines.append(f"시간: {reservation.time[:5]}")
    if reservation.customer_name:
        lines.append(f"고객: {reservation.customer_name}")
    if reservation.estimated_amount:
        lines.append(f"금액: {reservation.estimated_amount:,}원")

    return push_service.build_payload(
        title=f"예약 리마인더: {reservation.title}",
        body="\n".join(lines),
        tag=f"reminder-{reservation.id}",
        url=CALENDAR_URL,
        require_interaction=True,
    )


def _send(payload: dict, totals: dict) -> None:
    result = push_service.send_push_to_all(payload)
    totals["sent"] += result["sent"]
    totals["failed"] += result["failed"]


def send_daily_reminder(today: date | None = None) -> dict:
    today = today or local_today()
    totals = {"sent": 0, "failed": 0}

    todays = db.session.query(Reservation).filter(
        Reservation.date == today,
        Reservation.status != "cancelled",
    ).order_by(*_time_ordering()).all()

    if todays:
        _send(push_service.build_payload(
            title=f"오늘 예약 {len(todays)}건",
            body=_summary_body(todays),
            tag=f"daily-reminder-{today.isoformat()}",
            url=CALENDAR_URL,
        ), totals)

    advance = db.session.query(Reservation).filter(
        Reservation.reminder_date == today,
        Reservation.status.notin_(INACTIVE_STATUSES),
    ).order_by(Reservation.date.asc(), Reservation.id.asc()).all()

    for reservation in advance:
        _send(reminder_payload(reservation, today), totals)
        reservation.reminder_date = None
    if advance:
        db.session.commit()

    logger.info(
        "Daily reminder: %s reservation(s) today, %s advance reminder(s), sent=%s failed=%s",
        len(todays), len(advance), totals["sent"], totals["failed"],
    )
    return {
        "message": "Daily reminder sent",
        "today_reservations": len(todays),
        "advance_reminders": len(advance),
        "sent": totals["sent"],
        "failed": totals["failed"],
    }


def send_scheduled_reminders(now: datetime | None = None) -> dict:
    """`now` is UTC-naive, like every stored timestamp."""
    now = now or utcnow()
    reminders = db.session.query(Reservation).filter(
        Reservation.reminder_at <= now,
        Reservation.reminder_at > now - SCHEDULED_WINDOW,
        Reservation.status.notin_(INACTIVE_STATUSES),
    ).order_by(Reservation.date.asc(), Reservation.id.asc()).all()

    if not reminders:
        return {"message": "No scheduled reminders", "reminders": 0, "sent": 0, "failed": 0}

    totals = {"sent": 0, "failed": 0}
    today = local_today()
    for reservation in reminders:
        _send(reminder_payload(reservation, today), totals)
        reservation.reminder_at = None
    db.session.commit()

    logger.info("Scheduled reminders: %s sent=%s failed=%s", len(reminders), totals["sent"], totals["failed"])
    return {
        "message": "Scheduled reminders sent",
        "reminders": len(reminders),
        "sent": totals["sent"],
        "failed": totals["failed"],
    }
