# routes/scheduling.py

from datetime import datetime, time

from flask import Blueprint, current_app, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from models import db, Prompt, Submission, User
from routes.prompts import resolve_current_prompt
from services.reconciliation import build_schedule_report, next_slot_after, reschedule_all
from services.scheduling_config import SchedulingConfigError, get_store
from utils.decorators import admin_required
from utils.helpers import parse_timestamp, to_iso, tz_utc, utcnow

scheduling_bp = Blueprint("scheduling", __name__)


def _parse_interval(value):
    """
    intervalMinutes from a request body. Omitted (None) passes through so the
    stored interval is kept; whole-number strings become ints. Everything else
    goes to the store unchanged, which rejects non-integers.
    """
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return value


@scheduling_bp.route("/api/admin/scheduling", methods=["GET"])
@admin_required
def scheduling_overview():
    """
    Admin timeline: every prompt's stored slot vs. its slot on the linear schedule.
    Outputs: schedulingTimeline, stats, configuration
    """
    now = utcnow()
    config = get_store().get()
    prompts = Prompt.query.order_by(Prompt.scheduled_for.asc()).all()
    report = build_schedule_report(prompts, config, now)

    timeline = []
    for record in report.records:
        prompt = record.prompt
        timeline.append({
            "id": prompt.id,
            "title": prompt.title,
            "description": prompt.description,
            "category": prompt.category.to_dict() if prompt.category else None,
            "scheduledFor": to_iso(prompt.scheduled_for),
            "expectedScheduleTime": to_iso(record.expected),
            "actualScheduleTime": to_iso(record.actual),
            "driftSeconds": int(record.drift.total_seconds()),
            "isOnSchedule": record.is_on_schedule,
            "isActive": prompt.is_active,
            "submissionCount": prompt.submission_count,
            "createdBy": prompt.creator.to_summary() if prompt.creator else None,
            "position": record.position + 1,
            "status": record.status,
        })

    return jsonify({
        "success": True,
        "data": {
            "schedulingTimeline": timeline,
            "stats": report.stats,
            "configuration": {
                "intervalMinutes": config.interval_minutes,
                "baseTime": to_iso(config.base_time),
                "currentTime": to_iso(now),
                "isActive": config.is_active,
            },
        },
    })


@scheduling_bp.route("/api/admin/scheduling", methods=["POST"])
@admin_required
def update_scheduling():
    """
    Scheduling admin actions.
    Inputs (JSON):
        - action: 'updateInterval' | 'autoScheduleNew' | 'reset'
        - intervalMinutes?, baseTime?, rescheduleAll? (updateInterval; omitted interval keeps the stored one)
    Side Effects:
        - updateInterval persists config (and activates scheduling); with
          rescheduleAll, rewrites every prompt's scheduled_for, keeping is_active
    """
    body = request.get_json(silent=True) or {}
    action = body.get("action")
    store = get_store()

    if action == "updateInterval":
        try:
            interval_minutes = _parse_interval(body.get("intervalMinutes"))
            base_time = parse_timestamp(body["baseTime"]) if body.get("baseTime") else utcnow()
            config = store.update(interval_minutes=interval_minutes, base_time=base_time, is_active=True)
        except (TypeError, ValueError) as e:
            return jsonify({"success": False, "error": f"Invalid scheduling input: {e}"}), 400
        except SchedulingConfigError:
            current_app.logger.exception("Failed to persist scheduling config")
            return jsonify({"success": False, "error": "Failed to update scheduling configuration"}), 500

        data = {
            "intervalMinutes": config.interval_minutes,
            "baseTime": to_iso(config.base_time),
            "config": config.to_dict(),
        }

        if not body.get("rescheduleAll"):
            return jsonify({
                "success": True,
                "message": f"Updated interval to {config.interval_minutes} minutes",
                "data": data,
            })

        prompts = Prompt.query.order_by(Prompt.scheduled_for.asc(), Prompt.id.asc()).all()
        try:
            count = reschedule_all(prompts, config.base_time, config.interval_minutes)
            db.session.commit()
        except SQLAlchemyError:
            db.session.rollback()
            current_app.logger.exception("Failed to reschedule prompts")
            return jsonify({"success": False, "error": "Failed to reschedule prompts"}), 500

        current_app.logger.info("Rescheduled %d prompts from %s every %s min",
                                count, to_iso(config.base_time), config.interval_minutes)
        data["rescheduledPrompts"] = count
        return jsonify({
            "success": True,
            "message": f"Updated interval to {config.interval_minutes} minutes and rescheduled {count} prompts",
            "data": data,
        })

    if action == "autoScheduleNew":
        config = store.get()
        last = Prompt.query.order_by(Prompt.scheduled_for.desc()).first()
        slot = next_slot_after(last.scheduled_for if last else None, config.interval_minutes, utcnow())
        return jsonify({
            "success": True,
            "data": {"nextAvailableSlot": to_iso(slot), "intervalMinutes": config.interval_minutes},
        })

    if action == "reset":
        try:
            config = store.reset()
        except SchedulingConfigError:
            current_app.logger.exception("Failed to reset scheduling config")
            return jsonify({"success": False, "error": "Failed to reset scheduling configuration"}), 500
        return jsonify({"success": True, "message": "Scheduling configuration reset", "data": config.to_dict()})

    return jsonify({"success": False, "error": "Invalid action"}), 400


@scheduling_bp.route("/api/admin/scheduling", methods=["PUT"])
@admin_required
def reschedule_prompt():
    """
    Move one prompt to a new slot.
    Inputs (JSON): promptId, newScheduleTime
    """
    body = request.get_json(silent=True) or {}
    prompt_id = body.get("promptId")
    new_time = body.get("newScheduleTime")

    if not prompt_id or not new_time:
        return jsonify({"success": False, "error": "promptId and newScheduleTime are required"}), 400

    try:
        scheduled_for = parse_timestamp(new_time)
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    prompt = db.session.get(Prompt, prompt_id)
    if not prompt:
        return jsonify({"success": False, "error": "Prompt not found"}), 404

    prompt.scheduled_for = scheduled_for
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to reschedule prompt %s", prompt_id)
        return jsonify({"success": False, "error": "Failed to reschedule prompt"}), 500

    return jsonify({
        "success": True,
        "message": f'Rescheduled "{prompt.title}" to {to_iso(scheduled_for)}',
        "data": {
            "id": prompt.id,
            "title": prompt.title,
            "scheduledFor": to_iso(prompt.scheduled_for),
            "category": prompt.category.name if prompt.category else None,
        },
    })


@scheduling_bp.route("/api/scheduler", methods=["GET"])
def scheduler_status():
    """
    Scheduling status. isRunning mirrors the config flag, not the reconciler thread.
    """
    config = get_store().get()
    active_count = Prompt.query.filter(Prompt.is_active.is_(True)).count()
    next_prompt = (Prompt.query
                   .filter(Prompt.scheduled_for > utcnow(), Prompt.is_active.is_(False))
                   .order_by(Prompt.scheduled_for.asc())
                   .first())
    return jsonify({
        "success": True,
        "data": {
            "isRunning": config.is_active,
            "intervalMinutes": config.interval_minutes,
            "baseTime": to_iso(config.base_time),
            "activePrompts": active_count,
            "nextPrompt": next_prompt.to_dict(include_counts=False) if next_prompt else None,
        },
    })


@scheduling_bp.route("/api/scheduler", methods=["POST"])
@admin_required
def control_scheduler():
    """
    Start/stop scheduling by toggling SchedulingConfig.is_active.
    Inputs (JSON): action 'start' | 'stop'
    """
    action = (request.get_json(silent=True) or {}).get("action")
    if action not in ("start", "stop"):
        return jsonify({"success": False, "error": 'Invalid action. Use "start" or "stop"'}), 400

    try:
        config = get_store().update(is_active=(action == "start"))
    except SchedulingConfigError:
        current_app.logger.exception("Failed to %s scheduler", action)
        return jsonify({"success": False, "error": "Failed to control scheduler"}), 500

    verb = "started" if config.is_active else "stopped"
    return jsonify({
        "success": True,
        "message": f"Scheduler {verb} successfully",
        "data": {"isRunning": config.is_active, "intervalMinutes": config.interval_minutes},
    })


@scheduling_bp.route("/api/admin/stats")
@admin_required
def admin_stats():
    """
    Dashboard totals plus the prompt currently in rotation (if any).
    """
    today_start = datetime.combine(utcnow().date(), time.min).replace(tzinfo=tz_utc)
    prompt, _, _, _, _ = resolve_current_prompt()

    return jsonify({
        "success": True,
        "data": {
            "totalPrompts": Prompt.query.count(),
            "totalSubmissions": Submission.query.count(),
            "totalUsers": User.query.count(),
            "todaySubmissions": Submission.query.filter(Submission.submitted_at >= today_start).count(),
            "activePrompt": prompt.to_dict() if prompt else None,
        },
    })
