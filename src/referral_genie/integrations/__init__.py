"""
referral_genie.integrations

Outbound HTTP clients for third-party services.

Responsibilities:
- HumbleFax (temporary fax lifecycle, delivery status, account check).
- Google Maps Geocoding + Places (prospecting).
- Fax number normalisation shared by both the API and the send workflow.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Clients wrap a shared `httpx.AsyncClient` created in the app lifespan; tests inject
# an `httpx.MockTransport` there instead of patching the clients.
