# services/seed.py

import json
import logging

from flask_bcrypt import generate_password_hash

from models import db, Prompt, PromptCategory, User
from services.reconciliation import expected_slot
from utils.helpers import floor_minute, utcnow

logger = logging.getLogger(__name__)

CATEGORIES = [
    ("Drawing & Illustration", "Traditional and digital drawing prompts", "#ff6b6b", "palette"),
    ("Photography", "Capture the world through your lens", "#4ecdc4", "camera"),
    ("Creative Writing", "Stories, poems, and written expression", "#45b7d1", "pen"),
    ("Mixed Media", "Combine different art forms and materials", "#96ceb4", "layers"),
]

# (title, description, category index, tags, allowed types)
PROMPTS = [
    ("Urban Sketching",
     "Draw or photograph an interesting architectural detail you encounter in your city. "
     "Focus on textures, shadows, and unique design elements.",
     0, ["architecture", "urban", "sketching", "details"], "TEXT,IMAGE,TEXT_IMAGE"),
    ("Color Emotions",
     "Create a piece that expresses a specific emotion using only three colors.",
     0, ["color", "emotion", "psychology", "mood"], "TEXT,IMAGE,TEXT_IMAGE"),
    ("Golden Hour Magic",
     "Capture the beauty of golden hour light in your medium of choice.",
     1, ["golden-hour", "light", "photography"], "TEXT,IMAGE,TEXT_IMAGE"),
    ("Micro Fiction Challenge",
     "Write a complete story in exactly 55 words. Every word counts!",
     2, ["micro-fiction", "writing", "short-story"], "TEXT"),
    ("Nature Patterns",
     "Find and capture patterns in nature, from leaf veins to cloud formations.",
     1, ["nature", "patterns", "geometry"], "IMAGE,TEXT_IMAGE"),
    ("Mixed Media Collage",
     "Create a collage using at least three different materials or mediums.",
     3, ["collage", "mixed-media"], "ALL"),
]


def seed_database(admin_email, admin_password, interval_minutes, base_time=None):
    """
    Idempotent demo data: categories, an admin user, and sample prompts laid
    out back-to-back from base_time (first slot active).
    Returns (categories_created, prompts_created).
    """
    base_time = floor_minute(base_time or utcnow())

    categories = []
    created_categories = 0
    for name, description, color, icon in CATEGORIES:
        category = PromptCategory.query.filter_by(name=name).first()
        if not category:
            category = PromptCategory(name=name, description=description, color=color, icon=icon)
            db.session.add(category)
            created_categories += 1
        categories.append(category)

    admin = User.query.filter_by(email=admin_email).first()
    if not admin:
        admin = User(
            name="Admin User",
            email=admin_email,
            password=generate_password_hash(admin_password).decode("utf-8"),
            role="ADMIN",
        )
        db.session.add(admin)
    db.session.flush()

    created_prompts = 0
    for position, (title, description, cat_index, tags, allowed) in enumerate(PROMPTS):
        if Prompt.query.filter_by(title=title).first():
            continue
        db.session.add(Prompt(
            title=title,
            description=description,
            category_id=categories[cat_index].id,
            created_by=admin.id,
            tags=json.dumps(tags),
            allowed_types=allowed,
            scheduled_for=expected_slot(base_time, interval_minutes, position),
            is_active=position == 0,
        ))
        created_prompts += 1

    db.session.commit()
    logger.info("Seeded %d categories and %d prompts", created_categories, created_prompts)
    return created_categories, created_prompts
