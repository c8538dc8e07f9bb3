"""
referral_genie.api

HTTP API package for the Referral Genie service.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and request/response models.
"""

# Package marker.
