# =============================================================================
# Models Package - Pydantic V2 Schemas
# =============================================================================
#   - analysis.py: domain records (metadata, analysis payload, store record)
#   - responses.py: API response bodies
#
# Separate from the ORM models in db/models.py, which only exist when
# durable storage is enabled.
# =============================================================================
