from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy import extract, func, select
from sqlalchemy.exc import IntegrityError
from sqlmodel import col

from vacation_engine.exceptions import AppError, NotFound
from vacation_engine.models.holiday import CompanyHoliday
from vacation_engine.schemas.holiday import BusinessDaysResponse, HolidayListResponse, HolidayResponse
from vacation_engine.services.balance import ensure_hr_or_admin
from vacation_engine.services.calendar import count_business_days

if TYPE_CHECKING:
    import uuid
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from vacation_engine.schemas.auth import AuthContext
    from vacation_engine.schemas.holiday import CreateHolidayRequest

logger = logging.getLogger(__name__)


def _build_holiday_response(holiday: CompanyHoliday) -> HolidayResponse:
    return HolidayResponse(
        id=holiday.id,
        company_id=holiday.company_id,
        date=holiday.date,
        name=holiday.name,
    )


async def create_holiday(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateHolidayRequest,
) -> HolidayResponse:
    """Create a company holiday."""
    ensure_hr_or_admin(auth, "manage holidays")
    holiday = CompanyHoliday(
        company_id=auth.company_id,
        date=payload.date,
        name=payload.name,
    )
    session.add(holiday)

    try:
        await session.flush()
    except IntegrityError:
        await session.rollback()
        raise AppError("Holiday already exists for this date", status_code=409) from None

    await session.commit()
    await session.refresh(holiday)
    logger.info("Holiday %s (%s) created for company=%s by %s", holiday.date, holiday.id, auth.company_id, auth.user_id)
    return _build_holiday_response(holiday)


async def list_holidays(
    session: AsyncSession,
    company_id: uuid.UUID,
    year: int | None = None,
    offset: int = 0,
    limit: int = 50,
) -> HolidayListResponse:
    """List company holidays with optional year filter."""
    base_filter = [col(CompanyHoliday.company_id) == company_id]

    if year is not None:
        base_filter.append(extract("year", col(CompanyHoliday.date)) == year)

    count_result = await session.execute(select(func.count()).select_from(CompanyHoliday).where(*base_filter))
    total = count_result.scalar_one()

    result = await session.execute(
        select(CompanyHoliday).where(*base_filter).order_by(col(CompanyHoliday.date)).offset(offset).limit(limit)
    )
    holidays = list(result.scalars().all())

    return HolidayListResponse(
        items=[_build_holiday_response(h) for h in holidays],
        total=total,
    )


async def delete_holiday(
    session: AsyncSession,
    auth: AuthContext,
    holiday_id: uuid.UUID,
) -> None:
    """Delete a company holiday."""
    ensure_hr_or_admin(auth, "manage holidays")
    result = await session.execute(
        select(CompanyHoliday).where(
            col(CompanyHoliday.id) == holiday_id,
            col(CompanyHoliday.company_id) == auth.company_id,
        )
    )
    holiday = result.scalar_one_or_none()
    if holiday is None:
        raise NotFound("Holiday not found")

    await session.delete(holiday)
    await session.commit()
    logger.info("Holiday %s (%s) deleted for company=%s by %s", holiday.date, holiday_id, auth.company_id, auth.user_id)


async def fetch_holiday_dates(
    session: AsyncSession,
    company_id: uuid.UUID,
    start: date,
    end: date,
) -> set[date]:
    """Holiday dates of a company within the inclusive range."""
    result = await session.execute(
        select(col(CompanyHoliday.date)).where(
            col(CompanyHoliday.company_id) == company_id,
            col(CompanyHoliday.date) >= start,
            col(CompanyHoliday.date) <= end,
        )
    )
    return set(result.scalars().all())


async def count_company_business_days(
    session: AsyncSession,
    company_id: uuid.UUID,
    start: date,
    end: date,
) -> BusinessDaysResponse:
    """Working days between two dates, skipping weekends and company holidays."""
    holidays = await fetch_holiday_dates(session, company_id, start, end)
    business_days = count_business_days(start, end, holidays)
    return BusinessDaysResponse(
        start_date=start,
        end_date=end,
        calendar_days=(end - start).days + 1,
        business_days=business_days,
        holidays_excluded=sum(1 for h in holidays if h.weekday() < 5),
    )
