"""
Dashboard API Endpoints

Static analytics for the inbox dashboard. The numbers are placeholders until
real aggregation exists.
"""
from fastapi import APIRouter
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

MOCK_DASHBOARD_STATS = {
    "openChats": 5,
    "avgResponseTime": "0m 30s",
    "resolvedToday": 12,
    "csat": "98%",
    "chartData": [
        {"name": "Mon", "conversations": 8},
        {"name": "Tue", "conversations": 12},
        {"name": "Wed", "conversations": 10},
        {"name": "Thu", "conversations": 15},
        {"name": "Fri", "conversations": 18},
        {"name": "Sat", "conversations": 9},
        {"name": "Sun", "conversations": 6}
    ],
    "simulated": True,
    "message": "Using mock data - database tables may not be initialized"
}


@router.get(
    "/stats",
    summary="Get dashboard statistics",
    description="Mock statistics for the dashboard cards and weekly chart"
)
async def get_dashboard_stats():
    """Return the mock dashboard statistics"""
    return {
        **MOCK_DASHBOARD_STATS,
        "chartData": [dict(point) for point in MOCK_DASHBOARD_STATS["chartData"]]
    }
