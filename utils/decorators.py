# utils/decorators.py

from functools import wraps

from flask import g, jsonify, session

from models import db, User


def load_current_user():
    """Resolve session['user_id'] (set by the session provider) to a User, or None."""
    user_id = session.get("user_id")
    if not user_id:
        return None
    return db.session.get(User, user_id)


def login_required(view):
    """401 unless a signed-in user is in the session. Sets g.user."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = load_current_user()
        if not user:
            return jsonify({"success": False, "error": "Authentication required"}), 401
        g.user = user
        return view(*args, **kwargs)
    return wrapped


def admin_required(view):
    """401 when signed out, 403 unless the user is an ADMIN or MODERATOR. Sets g.user."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        user = load_current_user()
        if not user:
            return jsonify({"success": False, "error": "Authentication required"}), 401
        if not user.is_admin:
            return jsonify({"success": False, "error": "Unauthorized - Admin only"}), 403
        g.user = user
        return view(*args, **kwargs)
    return wrapped
