from fastapi import APIRouter

from leave_engine.api.balances import balances_router, employee_balance_router, employee_leave_router
from leave_engine.api.departments import departments_router
from leave_engine.api.employees import employees_router
from leave_engine.api.holidays import holidays_router
from leave_engine.api.leave_types import leave_types_router
from leave_engine.api.reports import audit_router, reports_router
from leave_engine.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(leave_types_router)
api_router.include_router(requests_router)
api_router.include_router(employee_balance_router)
api_router.include_router(employee_leave_router)
api_router.include_router(balances_router)
api_router.include_router(employees_router)
api_router.include_router(departments_router)
api_router.include_router(holidays_router)
api_router.include_router(reports_router)
api_router.include_router(audit_router)
