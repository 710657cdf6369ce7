"""API routes package.

Routers are organized by domain and registered in main.py with /api prefix:

- payments: DOKU checkout initiation (identity required)
- webhooks: DOKU payment notifications (no identity, optionally signed)
- bookings: booking lookup and occupied slots
"""

from courtbook_api.routes.bookings import router as bookings_router
from courtbook_api.routes.payments import router as payments_router
from courtbook_api.routes.webhooks import router as webhooks_router

__all__ = [
    "bookings_router",
    "payments_router",
    "webhooks_router",
]
