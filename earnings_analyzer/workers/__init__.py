# =============================================================================
# Workers Package - Background Analysis
# =============================================================================
#   - tasks.py: run_analysis_job, scheduled by the upload endpoint through
#     FastAPI BackgroundTasks
#
# The analysis runs in-process: the in-memory store cannot be shared with
# a separate worker process.
# =============================================================================
