# =============================================================================
# Agents Package - LLM Steps of the Upload Pipeline
# =============================================================================
#   - extractor.py: filing metadata from the head of the report (runs
#     inside the upload request)
#   - analyst.py: full structured analysis (runs in the background task)
#   - prompts.py: metadata prompt and the per-company-type analysis prompts
# =============================================================================
