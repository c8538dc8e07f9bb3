"""
referral_genie.db

Persistence package (SQLAlchemy async).

Responsibilities:
- Provide ORM models, engine/session setup, retry helpers and repositories.
"""

# Package marker.
