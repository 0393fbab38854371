# =============================================================================
# Database Package - Optional Durable Storage
# =============================================================================
# Async SQLAlchemy engine, session scope, ORM models and query helpers for
# companies, financial reports and completed analyses. Used only when
# `persistence_enabled` is set.
# =============================================================================
