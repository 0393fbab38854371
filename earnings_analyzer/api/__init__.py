# =============================================================================
# API Package - FastAPI Route Handlers
# =============================================================================
#   - reports.py: upload, record lookup, durable-storage listing
#   - dashboard.py: recent analyses and processing counts
#   - deps.py: shared dependencies (store, LLM provider, pipeline)
# =============================================================================
