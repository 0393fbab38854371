# =============================================================================
# Earnings Report Analyzer
# =============================================================================
# Upload a financial report, extract its filing metadata, and run a
# structured LLM earnings analysis in the background. Results are read by
# polling the dashboard.
#
# Package structure:
#   earnings_analyzer/
#   ├── api/          → FastAPI route handlers (upload, lookup, dashboard)
#   ├── agents/       → Metadata extractor, analyst agent, prompt variants
#   ├── db/           → Optional durable storage (async SQLAlchemy)
#   ├── models/       → Pydantic V2 domain records and response schemas
#   ├── services/     → Parsing, LLM providers, store, upload pipeline
#   └── workers/      → Background analysis task
# =============================================================================
