from fastapi import APIRouter
from hr201.routers import (
    availability, employees, leave, leave_types, notifications, travel
)

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(employees.router)
api_router.include_router(leave_types.router)
api_router.include_router(leave.router)
api_router.include_router(travel.router)
api_router.include_router(availability.router)
api_router.include_router(notifications.router)
