# routes/submissions.py

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from models import db, Comment, Prompt, Submission, SUBMISSION_TYPES
from routes.prompts import resolve_current_prompt
from services.user_stats import favorite_category, submission_streaks
from utils.decorators import login_required
from utils.helpers import pagination_meta, parse_pagination, utcnow

submissions_bp = Blueprint("submissions", __name__)


def _clean(value):
    if not isinstance(value, str):
        return None
    return value.strip() or None


@submissions_bp.route("/api/submissions", methods=["GET"])
def list_submissions():
    """
    Public submissions, newest first.
    Inputs (query): page, limit, promptId, userId
    """
    page, limit, offset = parse_pagination(request.args)
    query = Submission.query.filter(Submission.is_public.is_(True))

    prompt_id = request.args.get("promptId", type=int)
    if prompt_id:
        query = query.filter(Submission.prompt_id == prompt_id)
    user_id = request.args.get("userId", type=int)
    if user_id:
        query = query.filter(Submission.user_id == user_id)

    total = query.count()
    submissions = query.order_by(Submission.submitted_at.desc()).offset(offset).limit(limit).all()

    return jsonify({
        "success": True,
        "data": {
            "submissions": [s.to_dict() for s in submissions],
            "pagination": pagination_meta(page, limit, total),
        },
    })


@submissions_bp.route("/api/submissions", methods=["POST"])
@login_required
def create_submission():
    """
    Respond to a prompt.
    Inputs (JSON): promptId, type, title?, description?, textContent?, imageUrl?, videoUrl?, isPublic?
    Outputs:
        - 200 with the submission (auto-approved)
        - 400 on missing fields, bad type, or a repeat submission; 404 on unknown prompt
    """
    body = request.get_json(silent=True) or {}
    prompt_id = body.get("promptId")
    submission_type = body.get("type")

    if not prompt_id:
        return jsonify({"success": False, "error": "Prompt ID is required"}), 400
    if not submission_type:
        return jsonify({"success": False, "error": "Submission type is required"}), 400
    if submission_type not in SUBMISSION_TYPES:
        return jsonify({"success": False, "error": f"Invalid submission type: {submission_type}"}), 400

    prompt = db.session.get(Prompt, prompt_id)
    if not prompt:
        return jsonify({"success": False, "error": "Prompt not found"}), 404

    # Prevent multiple submissions to the same prompt
    existing = Submission.query.filter_by(user_id=g.user.id, prompt_id=prompt.id).first()
    if existing:
        return jsonify({"success": False, "error": "You have already submitted for this prompt"}), 400

    submission = Submission(
        user_id=g.user.id,
        prompt_id=prompt.id,
        type=submission_type,
        title=_clean(body.get("title")),
        description=_clean(body.get("description")),
        text_content=_clean(body.get("textContent")),
        image_url=body.get("imageUrl") or None,
        video_url=body.get("videoUrl") or None,
        is_public=bool(body.get("isPublic", True)),
        status="APPROVED",  # auto-approve until moderation exists
    )
    try:
        db.session.add(submission)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to create submission for prompt %s", prompt_id)
        return jsonify({"success": False, "error": "Failed to create submission"}), 500

    current_app.logger.info("Submission saved: id=%s prompt=%s user=%s", submission.id, prompt.id, g.user.id)
    return jsonify({"success": True, "data": submission.to_dict()})


@submissions_bp.route("/api/submissions/current")
def current_submissions():
    """
    Up to 20 approved public submissions for the prompt currently in rotation.
    """
    prompt, _, _, _, message = resolve_current_prompt()
    if prompt is None:
        return jsonify({"success": False, "message": message, "data": []})

    submissions = (Submission.query
                   .filter(Submission.prompt_id == prompt.id,
                           Submission.is_public.is_(True),
                           Submission.status == "APPROVED")
                   .order_by(Submission.submitted_at.desc())
                   .limit(20)
                   .all())

    return jsonify({
        "success": True,
        "data": [s.to_dict() for s in submissions],
        "promptId": prompt.id,
    })


@submissions_bp.route("/api/submissions/<int:submission_id>")
def get_submission(submission_id):
    submission = db.session.get(Submission, submission_id)
    if not submission:
        return jsonify({"success": False, "error": "Submission not found"}), 404

    data = submission.to_dict()
    data["prompt"] = {"id": submission.prompt.id, "title": submission.prompt.title}
    data["commentCount"] = len(submission.comments)
    return jsonify({"success": True, "data": data})


@submissions_bp.route("/api/submissions/<int:submission_id>/comments", methods=["GET"])
def list_comments(submission_id):
    comments = (Comment.query
                .filter_by(submission_id=submission_id)
                .order_by(Comment.created_at.desc(), Comment.id.desc())
                .all())
    return jsonify({"success": True, "data": [c.to_dict() for c in comments]})


@submissions_bp.route("/api/submissions/<int:submission_id>/comments", methods=["POST"])
@login_required
def add_comment(submission_id):
    """
    Inputs (JSON): content (non-empty string)
    """
    content = (request.get_json(silent=True) or {}).get("content")
    if not content or not isinstance(content, str) or not content.strip():
        return jsonify({"success": False, "error": "Content is required"}), 400

    if not db.session.get(Submission, submission_id):
        return jsonify({"success": False, "error": "Submission not found"}), 404

    comment = Comment(content=content.strip(), user_id=g.user.id, submission_id=submission_id)
    try:
        db.session.add(comment)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        current_app.logger.exception("Failed to create comment on submission %s", submission_id)
        return jsonify({"success": False, "error": "Failed to create comment"}), 500

    return jsonify({"success": True, "data": comment.to_dict()})


def _own_submissions(user_id):
    return (Submission.query
            .filter_by(user_id=user_id)
            .order_by(Submission.submitted_at.desc(), Submission.id.desc())
            .all())


@submissions_bp.route("/api/submissions/user")
@login_required
def my_submissions():
    """
    The signed-in user's submissions (public or not), newest first, each with
    its prompt title and category name.
    """
    data = []
    for submission in _own_submissions(g.user.id):
        item = submission.to_dict()
        prompt = submission.prompt
        item["prompt"] = {
            "id": prompt.id,
            "title": prompt.title,
            "category": prompt.category.name if prompt.category else None,
        }
        data.append(item)
    return jsonify({"success": True, "data": data})


@submissions_bp.route("/api/users/stats")
@login_required
def user_stats():
    """
    Profile stats for the signed-in user.
    Outputs: totalSubmissions, currentStreak, longestStreak (UTC days), favoriteCategory
    """
    submissions = _own_submissions(g.user.id)
    current, longest = submission_streaks((s.submitted_at for s in submissions), utcnow().date())
    return jsonify({
        "success": True,
        "data": {
            "totalSubmissions": len(submissions),
            "currentStreak": current,
            "longestStreak": longest,
            "favoriteCategory": favorite_category(submissions),
        },
    })
