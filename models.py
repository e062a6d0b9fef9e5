# models.py

import json

from flask_sqlalchemy import SQLAlchemy

from utils.helpers import to_iso, utcnow

# Initialized in app.py
db = SQLAlchemy()

SUBMISSION_TYPES = ("TEXT", "IMAGE", "VIDEO", "TEXT_IMAGE", "TEXT_VIDEO", "ALL")


class User(db.Model):
    """
    A registered Prompt Wall user (sign-in itself is handled by the session provider).
    Fields:
        - name: display name
        - email: unique contact / login handle
        - password: bcrypt hash, null for OAuth-only accounts
        - role: USER, MODERATOR or ADMIN
    Relationships:
        - prompts: prompts this user created
        - submissions: responses posted to prompts
        - comments: comments left on submissions
    """
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120))
    email = db.Column(db.String(200), unique=True)
    password = db.Column(db.String(200))
    image = db.Column(db.String(500))
    role = db.Column(db.String(20), nullable=False, default="USER")
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    prompts = db.relationship("Prompt", backref="creator")
    submissions = db.relationship("Submission", backref="user", cascade="all, delete")
    comments = db.relationship("Comment", backref="user", cascade="all, delete")

    @property
    def is_admin(self):
        return self.role in ("ADMIN", "MODERATOR")

    def to_summary(self):
        return {"id": self.id, "name": self.name, "image": self.image}


class PromptCategory(db.Model):
    """
    Grouping for prompts (e.g. Photography, Writing).
    """
    __tablename__ = "prompt_categories"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False, unique=True)
    description = db.Column(db.String(300))
    color = db.Column(db.String(20))
    icon = db.Column(db.String(50))

    prompts = db.relationship("Prompt", backref="category", cascade="all, delete")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "color": self.color,
            "icon": self.icon,
        }


class Prompt(db.Model):
    """
    A creative prompt placed on the schedule by an admin.
    Fields:
        - scheduled_for: UTC slot this prompt occupies on the linear schedule
        - is_active: flipped by the activation reconciler as windows pass
        - tags: JSON-encoded list of strings
        - allowed_types: comma-separated SubmissionType names
    Relationships:
        - submissions: all responses for this prompt
    """
    __tablename__ = "prompts"

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=False)
    category_id = db.Column(db.Integer, db.ForeignKey("prompt_categories.id"), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="SET NULL"))
    tags = db.Column(db.Text)
    allowed_types = db.Column(db.String(200), default="TEXT,IMAGE,VIDEO")
    scheduled_for = db.Column(db.DateTime(timezone=True), nullable=False, index=True)
    is_active = db.Column(db.Boolean, nullable=False, default=False, index=True)
    max_submissions = db.Column(db.Integer)
    submission_deadline = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    submissions = db.relationship("Submission", backref="prompt", cascade="all, delete")

    @property
    def submission_count(self):
        return len(self.submissions)

    @property
    def tag_list(self):
        if not self.tags:
            return []
        try:
            return json.loads(self.tags)
        except ValueError:
            return []

    @property
    def allowed_type_list(self):
        if not self.allowed_types:
            return []
        return [t.strip() for t in self.allowed_types.split(",") if t.strip()]

    def to_dict(self, include_counts=True):
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.to_dict() if self.category else None,
            "creator": self.creator.to_summary() if self.creator else None,
            "tags": self.tag_list,
            "allowedTypes": self.allowed_type_list,
            "scheduledFor": to_iso(self.scheduled_for),
            "isActive": self.is_active,
            "maxSubmissions": self.max_submissions,
            "submissionDeadline": to_iso(self.submission_deadline),
            "createdAt": to_iso(self.created_at),
        }
        if include_counts:
            data["submissionCount"] = self.submission_count
        return data


class Submission(db.Model):
    """
    A user's response to a prompt. Media is referenced by URL only.
    One submission per user per prompt.
    """
    __tablename__ = "submissions"
    __table_args__ = (
        db.UniqueConstraint("user_id", "prompt_id", name="uq_submission_user_prompt"),
    )

    id = db.Column(db.Integer, primary_key=True)
    prompt_id = db.Column(db.Integer, db.ForeignKey("prompts.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    type = db.Column(db.String(20), nullable=False)
    title = db.Column(db.String(200))
    description = db.Column(db.Text)
    text_content = db.Column(db.Text)
    image_url = db.Column(db.String(500))
    video_url = db.Column(db.String(500))
    thumbnail_url = db.Column(db.String(500))
    is_public = db.Column(db.Boolean, nullable=False, default=True)
    status = db.Column(db.String(20), nullable=False, default="PENDING")  # PENDING, APPROVED, REJECTED or FLAGGED
    likes = db.Column(db.Integer, nullable=False, default=0)
    views = db.Column(db.Integer, nullable=False, default=0)
    submitted_at = db.Column(db.DateTime(timezone=True), default=utcnow, index=True)

    comments = db.relationship("Comment", backref="submission", cascade="all, delete")

    def to_dict(self):
        return {
            "id": self.id,
            "promptId": self.prompt_id,
            "type": self.type,
            "title": self.title,
            "description": self.description,
            "textContent": self.text_content,
            "imageUrl": self.image_url,
            "videoUrl": self.video_url,
            "thumbnailUrl": self.thumbnail_url,
            "isPublic": self.is_public,
            "status": self.status,
            "likes": self.likes,
            "views": self.views,
            "submittedAt": to_iso(self.submitted_at),
            "user": self.user.to_summary() if self.user else None,
        }


class Comment(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.Integer, primary_key=True)
    submission_id = db.Column(db.Integer, db.ForeignKey("submissions.id"), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False)
    content = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "submissionId": self.submission_id,
            "content": self.content,
            "createdAt": to_iso(self.created_at),
            "user": self.user.to_summary() if self.user else None,
        }
