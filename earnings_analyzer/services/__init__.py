# =============================================================================
# Services Package - Business Logic
# =============================================================================
# Contains the core business logic, separated from API handlers:
#   - parser.py: text extraction (Docling for PDF, pandas for Excel)
#   - llm.py: Multi-provider LLM abstraction (Anthropic, OpenAI-compatible)
#   - store.py: In-memory, thread-safe registry of analysis records
#   - pipeline.py: Validate → extract → metadata → processing record
#   - stats.py: Dashboard summary counts
# =============================================================================
