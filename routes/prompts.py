# routes/prompts.py

import json

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError

from models import db, Prompt, PromptCategory, Submission, SUBMISSION_TYPES
from services.reconciliation import next_slot_after
from services.rotation import current_rotation
from services.scheduling_config import get_store
from utils.decorators import admin_required
from utils.helpers import pagination_meta, parse_pagination, parse_timestamp, to_iso, utcnow

prompts_bp = Blueprint("prompts", __name__)

MSG_SCHEDULING_INACTIVE = "Prompt scheduling is not active. Admin must configure and activate scheduling."
MSG_NO_ACTIVE_PROMPTS = "No active prompts found. Admin must create and schedule prompts."
MSG_NO_CURRENT_PROMPT = "No current prompt available"


def resolve_current_prompt(now=None):
    """
    Work out which prompt is current right now.
    Outputs: (prompt or None, rotation window or None, config, total_prompts, message)
        - prompt is None when scheduling is inactive or nothing is active;
          message says why.
    """
    now = now or utcnow()
    config = get_store().get()
    if not config.is_active:
        return None, None, config, 0, MSG_SCHEDULING_INACTIVE

    prompts = Prompt.query.filter(Prompt.is_active.is_(True)).order_by(Prompt.scheduled_for.asc()).all()
    if not prompts:
        return None, None, config, 0, MSG_NO_ACTIVE_PROMPTS

    window = current_rotation(config, len(prompts), now=now)
    if not window.has_prompt or window.index >= len(prompts):
        return None, window, config, len(prompts), MSG_NO_CURRENT_PROMPT

    return prompts[window.index], window, config, len(prompts), None


def _parse_allowed_types(value):
    if value is None:
        return None
    if isinstance(value, str):
        value = [v.strip() for v in value.split(",")]
    types = [str(v).strip().upper() for v in value if str(v).strip()]
    invalid = [t for t in types if t not in SUBMISSION_TYPES]
    if invalid:
        raise ValueError(f"Invalid submission type(s): {', '.join(invalid)}")
    return ",".join(types)


@prompts_bp.route("/api/prompts/current")
def current_prompt():
    """
    Current prompt from the cyclic rotation over active prompts.
    Outputs:
        - success: prompt + interval timing + scheduling config
        - no prompt: success False with a reason (not an error status)
    """
    now = utcnow()
    prompt, window, config, total, message = resolve_current_prompt(now)
    if prompt is None:
        return jsonify({"success": False, "message": message, "data": None})

    data = prompt.to_dict()
    data.update({
        "currentIntervalStart": to_iso(window.interval_start),
        "currentIntervalEnd": to_iso(window.interval_end),
        "timeRemainingSeconds": window.seconds_remaining(now),
        "promptIndex": window.index,
        "totalPrompts": total,
        "schedulingConfig": config.to_dict(),
    })
    return jsonify({"success": True, "data": data})


@prompts_bp.route("/api/prompts", methods=["GET"])
def list_prompts():
    """
    Paginated prompts, newest slot first.
    Inputs (query): page, limit, categoryId, isActive
    """
    page, limit, offset = parse_pagination(request.args)
    query = Prompt.query

    category_id = request.args.get("categoryId", type=int)
    if category_id:
        query = query.filter(Prompt.category_id == category_id)

    is_active = request.args.get("isActive")
    if is_active is not None:
        query = query.filter(Prompt.is_active.is_(is_active.lower() == "true"))

    total = query.count()
    prompts = query.order_by(Prompt.scheduled_for.desc()).offset(offset).limit(limit).all()

    return jsonify({
        "success": True,
        "data": {
            "prompts": [p.to_dict() for p in prompts],
            "pagination": pagination_meta(page, limit, total),
        },
    })


@prompts_bp.route("/api/prompts", methods=["POST"])
@admin_required
def create_prompt():
    """
    Create a prompt (admin only).
    Inputs (JSON): title, description, categoryId, scheduledFor?, tags?, allowedTypes?,
                   maxSubmissions?, submissionDeadline?
    Outputs:
        - 200 with the prompt; scheduledFor defaults to the next free slot
        - 400 on missing/invalid fields, 404 on unknown category
    """
    body = request.get_json(silent=True) or {}
    title = (body.get("title") or "").strip()
    description = (body.get("description") or "").strip()
    category_id = body.get("categoryId")

    if not title or not description or not category_id:
        return jsonify({"success": False, "error": "Missing required fields"}), 400

    category = db.session.get(PromptCategory, category_id)
    if not category:
        return jsonify({"success": False, "error": "Category not found"}), 404

    try:
        if body.get("scheduledFor"):
            scheduled_for = parse_timestamp(body["scheduledFor"])
        else:
            last = Prompt.query.order_by(Prompt.scheduled_for.desc()).first()
            scheduled_for = next_slot_after(
                last.scheduled_for if last else None,
                get_store().get().interval_minutes,
                utcnow(),
            )
        deadline = parse_timestamp(body["submissionDeadline"]) if body.get("submissionDeadline") else None
        allowed_types = _parse_allowed_types(body.get("allowedTypes"))
    except ValueError as e:
        return jsonify({"success": False, "error": str(e)}), 400

    prompt = Prompt(
        title=title,
        description=description,
        category_id=category.id,
        created_by=g.user.id,
        tags=json.dumps(body["tags"]) if body.get("tags") else None,
        scheduled_for=scheduled_for,
        is_active=False,
        max_submissions=body.get("maxSubmissions"),
        submission_deadline=deadline,
    )
    if allowed_types is not None:
        prompt.allowed_types = allowed_types

    try:
        db.session.add(prompt)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to create prompt")
        return jsonify({"success": False, "error": "Failed to create prompt"}), 500

    current_app.logger.info("Prompt created: id=%s scheduled_for=%s", prompt.id, to_iso(prompt.scheduled_for))
    return jsonify({"success": True, "data": prompt.to_dict()})


@prompts_bp.route("/api/prompts/history")
def prompt_history():
    """
    Past prompts (slot already started), newest first.
    Inputs (query): page, limit, category (name or 'all'), search
    """
    page, limit, offset = parse_pagination(request.args, default_limit=12)
    query = Prompt.query.filter(Prompt.scheduled_for < utcnow())

    category = request.args.get("category")
    if category and category != "all":
        query = query.join(PromptCategory).filter(PromptCategory.name == category)

    search = (request.args.get("search") or "").strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Prompt.title.ilike(pattern), Prompt.description.ilike(pattern)))

    total = query.count()
    prompts = query.order_by(Prompt.scheduled_for.desc()).offset(offset).limit(limit).all()

    items = []
    for prompt in prompts:
        recent = (Submission.query
                  .filter_by(prompt_id=prompt.id)
                  .order_by(Submission.submitted_at.desc())
                  .limit(5)
                  .all())
        items.append({
            "id": prompt.id,
            "title": prompt.title,
            "description": prompt.description,
            "category": prompt.category.to_dict() if prompt.category else None,
            "scheduledFor": to_iso(prompt.scheduled_for),
            "submissionCount": prompt.submission_count,
            "recentSubmissions": [
                {"user": {"name": s.user.name or "Anonymous", "image": s.user.image}}
                for s in recent
            ],
        })

    return jsonify({"prompts": items, "pagination": pagination_meta(page, limit, total)})


@prompts_bp.route("/api/prompts/<int:prompt_id>", methods=["GET"])
def get_prompt(prompt_id):
    prompt = db.session.get(Prompt, prompt_id)
    if not prompt:
        return jsonify({"success": False, "error": "Prompt not found"}), 404
    return jsonify({"success": True, "data": prompt.to_dict()})


@prompts_bp.route("/api/prompts/<int:prompt_id>", methods=["PUT"])
@admin_required
def update_prompt(prompt_id):
    """
    Partial update (admin only). Only fields present in the body change.
    """
    prompt = db.session.get(Prompt, prompt_id)
    if not prompt:
        return jsonify({"success": False, "error": "Prompt not found"}), 404

    body = request.get_json(silent=True) or {}
    try:
        if "title" in body:
            prompt.title = body["title"]
        if "description" in body:
            prompt.description = body["description"]
        if "categoryId" in body:
            if not db.session.get(PromptCategory, body["categoryId"]):
                return jsonify({"success": False, "error": "Category not found"}), 404
            prompt.category_id = body["categoryId"]
        if "tags" in body:
            prompt.tags = json.dumps(body["tags"]) if body["tags"] else None
        if "allowedTypes" in body:
            prompt.allowed_types = _parse_allowed_types(body["allowedTypes"])
        if "scheduledFor" in body:
            prompt.scheduled_for = parse_timestamp(body["scheduledFor"])
        if "isActive" in body:
            prompt.is_active = bool(body["isActive"])
    except ValueError as e:
        db.session.rollback()
        return jsonify({"success": False, "error": str(e)}), 400

    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to update prompt %s", prompt_id)
        return jsonify({"success": False, "error": "Failed to update prompt"}), 500

    return jsonify({"success": True, "data": prompt.to_dict()})


@prompts_bp.route("/api/prompts/<int:prompt_id>", methods=["DELETE"])
@admin_required
def delete_prompt(prompt_id):
    """
    Delete a prompt and (via cascade) its submissions. Admin only.
    """
    prompt = db.session.get(Prompt, prompt_id)
    if not prompt:
        return jsonify({"success": False, "error": "Prompt not found"}), 404

    try:
        db.session.delete(prompt)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to delete prompt %s", prompt_id)
        return jsonify({"success": False, "error": "Failed to delete prompt"}), 500

    return jsonify({"success": True, "message": "Prompt deleted successfully"})


@prompts_bp.route("/api/categories")
def list_categories():
    rows = (
        db.session.query(PromptCategory, func.count(Prompt.id).label("prompt_count"))
        .outerjoin(Prompt, Prompt.category_id == PromptCategory.id)
        .group_by(PromptCategory.id)
        .order_by(PromptCategory.name.asc())
        .all()
    )
    data = []
    for category, prompt_count in rows:
        item = category.to_dict()
        item["promptCount"] = prompt_count
        data.append(item)
    return jsonify({"success": True, "data": data})
