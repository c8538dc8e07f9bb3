"""
referral_genie.services

Service layer.

Responsibilities:
- Business workflows that span repositories and external clients
  (campaign send, delivery status tracking, prospecting, document storage).
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services may commit: the send workflow checkpoints after every recipient.
