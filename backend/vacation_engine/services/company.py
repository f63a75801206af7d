# ruff: noqa: TC003
from __future__ import annotations

import uuid
from typing import Protocol, runtime_checkable

from pydantic import BaseModel


class CompanyInfo(BaseModel):
    """Tenant record from the company directory."""

    id: uuid.UUID
    name: str
    default_calculation_base: int = 365
    active: bool = True


@runtime_checkable
class CompanyService(Protocol):
    """Interface for the company directory."""

    async def get_company(self, company_id: uuid.UUID) -> CompanyInfo | None:
        """Fetch company metadata. Returns None if not found."""
        ...

    async def list_companies(self) -> list[CompanyInfo]:
        """List every active tenant; drives the scheduled sweep and audit."""
        ...


class InMemoryCompanyService:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self._companies: dict[uuid.UUID, CompanyInfo] = {}

    def seed(self, company: CompanyInfo) -> None:
        """Seed a company for testing."""
        self._companies[company.id] = company

    async def get_company(self, company_id: uuid.UUID) -> CompanyInfo | None:
        return self._companies.get(company_id)

    async def list_companies(self) -> list[CompanyInfo]:
        return [c for c in self._companies.values() if c.active]


_company_service: CompanyService = InMemoryCompanyService()


def get_company_service() -> CompanyService:
    """Return the configured company directory."""
    return _company_service


def set_company_service(service: CompanyService) -> None:
    """Override the service (for testing or production wiring)."""
    global _company_service
    _company_service = service
