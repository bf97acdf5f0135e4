"""Coffee orders FastAPI application.

Processes order commands synchronously via HTTP.

Usage:
    uvicorn src.app:app --host 0.0.0.0 --port 8000 --reload
"""

# PROTEAN_ENV controls which config overlay is applied:
#   - unset/"test" → in-memory storage, sync event processing
#   - "production" → PostgreSQL, async event processing
from ordering.api import build_app
from ordering.domain import ordering
from ordering.utils.logging import configure_logging

configure_logging()
ordering.init()

app = build_app(ordering)
