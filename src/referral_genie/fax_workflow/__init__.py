"""
referral_genie.fax_workflow

Per-recipient fax delivery workflow (LangGraph).

Responsibilities:
- Typed state passed between workflow nodes.
- Nodes for each HumbleFax step (prepare -> create tmp fax -> upload -> send).
- Graph assembly and compilation.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Persistence is not done here; `services.campaign_sender` owns recipient status updates.
