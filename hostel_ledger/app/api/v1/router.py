"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from hostel_ledger.app.api.v1.endpoints import residents, dues, payments, complaints

router = APIRouter()

# Resident registry and resident views
router.include_router(residents.router)

# Dues ledger
router.include_router(dues.resident_router)
router.include_router(dues.router)
router.include_router(payments.router)

# Complaint tracker
router.include_router(complaints.resident_router)
router.include_router(complaints.router)
