"""Company API endpoints."""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from omnicrm.api.deps import get_current_user, get_db, get_org_object
from omnicrm.api.permissions import enforce
from omnicrm.api.schemas.common import DENIED_RESPONSES
from omnicrm.api.schemas.crm import CompanyCreate, CompanyResponse, CompanyUpdate
from omnicrm.db.models import Company, User

router = APIRouter(prefix="/crm/companies", tags=["companies"], responses=DENIED_RESPONSES)


@router.get("", response_model=List[CompanyResponse])
@enforce("companies", "list")
async def list_companies(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    search: Optional[str] = Query(None),
):
    query = db.query(Company).filter(Company.org_id == current_user.org_id)
    if search:
        query = query.filter(Company.name.ilike(f"%{search}%"))
    return query.order_by(Company.name).all()


@router.get("/{company_id}", response_model=CompanyResponse)
@enforce("companies", "get")
async def get_company(
    company_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return get_org_object(db, Company, company_id, current_user.org_id, detail="Company not found")


@router.post("", response_model=CompanyResponse, status_code=status.HTTP_201_CREATED)
@enforce("companies", "create")
async def create_company(
    company_data: CompanyCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company = Company(org_id=current_user.org_id, **company_data.model_dump())
    db.add(company)
    db.commit()
    db.refresh(company)
    return company


@router.put("/{company_id}", response_model=CompanyResponse)
@enforce("companies", "update")
async def update_company(
    company_id: UUID,
    company_data: CompanyUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    company = get_org_object(db, Company, company_id, current_user.org_id, detail="Company not found")
    for field, value in company_data.model_dump(exclude_unset=True).items():
        setattr(company, field, value)
    db.commit()
    db.refresh(company)
    return company


@router.delete("/{company_id}", status_code=status.HTTP_204_NO_CONTENT)
@enforce("companies", "delete")
async def delete_company(
    company_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Delete a company. Its contacts are kept and unlinked."""
    company = get_org_object(db, Company, company_id, current_user.org_id, detail="Company not found")
    for contact in company.contacts:
        contact.company_id = None
    db.delete(company)
    db.commit()
    return None
