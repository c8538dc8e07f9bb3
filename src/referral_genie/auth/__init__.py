"""
referral_genie.auth

Authentication package.

Responsibilities:
- Username/password check for the single CRM operator account.
- JWT session tokens and the FastAPI dependency that validates them.
"""

# Package marker.
