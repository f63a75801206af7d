from fastapi import APIRouter

from vacation_engine.api.accruals import calculator_router, company_accrual_router
from vacation_engine.api.audits import audits_router
from vacation_engine.api.balances import balances_router, employee_balance_router
from vacation_engine.api.historical import employee_historical_router, historical_router
from vacation_engine.api.holidays import business_days_router, holidays_router
from vacation_engine.api.reports import reports_router
from vacation_engine.api.requests import requests_router

api_router = APIRouter()
api_router.include_router(calculator_router)
api_router.include_router(company_accrual_router)
api_router.include_router(balances_router)
api_router.include_router(employee_balance_router)
api_router.include_router(employee_historical_router)
api_router.include_router(historical_router)
api_router.include_router(requests_router)
api_router.include_router(audits_router)
api_router.include_router(holidays_router)
api_router.include_router(business_days_router)
api_router.include_router(reports_router)
