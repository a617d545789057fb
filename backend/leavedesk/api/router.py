from fastapi import APIRouter

from leavedesk.api.employees import employees_router
from leavedesk.api.leaves import leaves_router
from leavedesk.api.notifications import notifications_router

api_router = APIRouter()
api_router.include_router(leaves_router)
api_router.include_router(employees_router)
api_router.include_router(notifications_router)
