"""Entity schemas.

For every table there are four shapes:

- ``<Entity>Row``: the wire row as selected (including embedded parent rows),
  validated strictly so malformed responses are rejected.
- ``<Entity>``: the public record, with one level of joined parent names
  flattened (``companies.name`` becomes ``company_name``).
- ``<Entity>Create`` / ``<Entity>Update``: write payloads.

``<entity>_from_row`` functions map a row to its public record.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from insura_ops.schemas.enums import (
    BenefitType,
    ClaimStatus,
    CommissionStatus,
    CompanyStatus,
    DealStage,
    EmployeeStatus,
    InteractionType,
    PolicyStatus,
    ProviderStatus,
    ProviderType,
    QuoteStatus,
    RenewalStatus,
    UserRole,
)


class RecordFields(BaseModel):
    """Columns owned by the backend."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(..., description="Primary key")
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class UpdateModel(BaseModel):
    """Partial update payload; only fields explicitly set are sent."""

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_unset=True)


class CreateModel(BaseModel):
    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# Embedded parent rows


class NameRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None


class PolicyRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    policy_number: Optional[str] = None


class PersonRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: Optional[str] = None
    last_name: Optional[str] = None

    @property
    def full_name(self) -> Optional[str]:
        parts = [p for p in (self.first_name, self.last_name) if p]
        return " ".join(parts) or None


def _name(ref: Optional[NameRef]) -> Optional[str]:
    return ref.name if ref else None


# Companies


class CompanyBase(BaseModel):
    name: str = Field(..., min_length=1, description="Company name")
    industry: Optional[str] = None
    employee_count: int = Field(default=0, ge=0)
    country: Optional[str] = None
    workpay_id: Optional[str] = Field(None, description="Payroll system ID")
    hubspot_id: Optional[str] = Field(None, description="CRM ID")
    status: CompanyStatus = CompanyStatus.PENDING


class CompanyCreate(CompanyBase, CreateModel):
    pass


class CompanyUpdate(UpdateModel):
    name: Optional[str] = Field(None, min_length=1)
    industry: Optional[str] = None
    employee_count: Optional[int] = Field(None, ge=0)
    country: Optional[str] = None
    workpay_id: Optional[str] = None
    hubspot_id: Optional[str] = None
    status: Optional[CompanyStatus] = None


class CompanyRow(CompanyBase, RecordFields):
    pass


class Company(CompanyBase, RecordFields):
    pass


def company_from_row(row: CompanyRow) -> Company:
    return Company(**row.model_dump())


# Employees


class EmployeeBase(BaseModel):
    company_id: str
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    date_of_birth: Optional[date] = None
    salary: Optional[float] = Field(None, ge=0)
    department: Optional[str] = None
    position: Optional[str] = Field(None, description="Job title")
    employment_date: Optional[date] = Field(None, description="Hire date")
    status: EmployeeStatus = EmployeeStatus.ACTIVE
    dependents: int = Field(default=0, ge=0)


class EmployeeCreate(EmployeeBase, CreateModel):
    email: EmailStr


class EmployeeUpdate(UpdateModel):
    company_id: Optional[str] = None
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    date_of_birth: Optional[date] = None
    salary: Optional[float] = Field(None, ge=0)
    department: Optional[str] = None
    position: Optional[str] = None
    employment_date: Optional[date] = None
    status: Optional[EmployeeStatus] = None
    dependents: Optional[int] = Field(None, ge=0)


class EmployeeRow(EmployeeBase, RecordFields):
    companies: Optional[NameRef] = None


class Employee(EmployeeBase, RecordFields):
    company_name: Optional[str] = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


def employee_from_row(row: EmployeeRow) -> Employee:
    return Employee(**row.model_dump(exclude={"companies"}), company_name=_name(row.companies))


# Quotes


class QuoteBase(BaseModel):
    company_id: str
    product_type: str = Field(..., min_length=1)
    provider_id: Optional[str] = None
    premium: float = Field(default=0, ge=0)
    employee_count: int = Field(default=0, ge=0)
    status: QuoteStatus = QuoteStatus.DRAFT
    valid_until: Optional[date] = None


class QuoteCreate(QuoteBase, CreateModel):
    quote_number: Optional[str] = None


class QuoteUpdate(UpdateModel):
    company_id: Optional[str] = None
    product_type: Optional[str] = Field(None, min_length=1)
    provider_id: Optional[str] = None
    premium: Optional[float] = Field(None, ge=0)
    employee_count: Optional[int] = Field(None, ge=0)
    status: Optional[QuoteStatus] = None
    valid_until: Optional[date] = None


class QuoteRow(QuoteBase, RecordFields):
    quote_number: str
    companies: Optional[NameRef] = None
    providers: Optional[NameRef] = None


class Quote(QuoteBase, RecordFields):
    quote_number: str
    company_name: Optional[str] = None
    provider_name: Optional[str] = None


def quote_from_row(row: QuoteRow) -> Quote:
    return Quote(
        **row.model_dump(exclude={"companies", "providers"}),
        company_name=_name(row.companies),
        provider_name=_name(row.providers),
    )


# Policies


class PolicyBase(BaseModel):
    company_id: str
    quote_id: Optional[str] = None
    provider_id: Optional[str] = None
    product_type: str = Field(..., min_length=1)
    premium: float = Field(default=0, ge=0)
    status: PolicyStatus = PolicyStatus.PENDING_APPROVAL
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    covered_employees: int = Field(default=0, ge=0)


class PolicyCreate(PolicyBase, CreateModel):
    policy_number: str = Field(..., min_length=1)


class PolicyUpdate(UpdateModel):
    company_id: Optional[str] = None
    quote_id: Optional[str] = None
    provider_id: Optional[str] = None
    policy_number: Optional[str] = Field(None, min_length=1)
    product_type: Optional[str] = None
    premium: Optional[float] = Field(None, ge=0)
    status: Optional[PolicyStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    covered_employees: Optional[int] = Field(None, ge=0)


class PolicyRow(PolicyBase, RecordFields):
    policy_number: str
    companies: Optional[NameRef] = None
    providers: Optional[NameRef] = None


class Policy(PolicyBase, RecordFields):
    policy_number: str
    company_name: Optional[str] = None
    provider_name: Optional[str] = None


def policy_from_row(row: PolicyRow) -> Policy:
    return Policy(
        **row.model_dump(exclude={"companies", "providers"}),
        company_name=_name(row.companies),
        provider_name=_name(row.providers),
    )


# Claims


class ClaimBase(BaseModel):
    policy_id: str
    employee_id: Optional[str] = None
    claim_type: str = Field(..., min_length=1)
    amount: float = Field(..., ge=0)
    status: ClaimStatus = ClaimStatus.SUBMITTED
    submitted_date: Optional[date] = None
    resolved_date: Optional[date] = None
    description: Optional[str] = None


class ClaimCreate(ClaimBase, CreateModel):
    claim_number: Optional[str] = None


class ClaimUpdate(UpdateModel):
    employee_id: Optional[str] = None
    claim_type: Optional[str] = Field(None, min_length=1)
    amount: Optional[float] = Field(None, ge=0)
    status: Optional[ClaimStatus] = None
    submitted_date: Optional[date] = None
    resolved_date: Optional[date] = None
    description: Optional[str] = None


class ClaimRow(ClaimBase, RecordFields):
    claim_number: str
    policies: Optional[PolicyRef] = None
    employees: Optional[PersonRef] = None


class Claim(ClaimBase, RecordFields):
    claim_number: str
    policy_number: Optional[str] = None
    employee_name: Optional[str] = None


def claim_from_row(row: ClaimRow) -> Claim:
    return Claim(
        **row.model_dump(exclude={"policies", "employees"}),
        policy_number=row.policies.policy_number if row.policies else None,
        employee_name=row.employees.full_name if row.employees else None,
    )


# Deals


class DealBase(BaseModel):
    company_id: str
    quote_id: Optional[str] = None
    name: str = Field(..., min_length=1)
    stage: DealStage = DealStage.LEAD
    value: float = Field(default=0, ge=0)
    probability: int = Field(default=10, ge=0, le=100)
    assigned_to: Optional[str] = None
    expected_close_date: Optional[date] = None
    hubspot_deal_id: Optional[str] = None


class DealCreate(DealBase, CreateModel):
    pass


class DealUpdate(UpdateModel):
    company_id: Optional[str] = None
    quote_id: Optional[str] = None
    name: Optional[str] = Field(None, min_length=1)
    stage: Optional[DealStage] = None
    value: Optional[float] = Field(None, ge=0)
    probability: Optional[int] = Field(None, ge=0, le=100)
    assigned_to: Optional[str] = None
    expected_close_date: Optional[date] = None
    hubspot_deal_id: Optional[str] = None


class DealRow(DealBase, RecordFields):
    companies: Optional[NameRef] = None


class Deal(DealBase, RecordFields):
    company_name: Optional[str] = None


def deal_from_row(row: DealRow) -> Deal:
    return Deal(**row.model_dump(exclude={"companies"}), company_name=_name(row.companies))


# Commissions


class CommissionBase(BaseModel):
    deal_id: str
    premium: float = Field(..., ge=0)
    rate: float = Field(..., ge=0, le=100, description="Percent of premium")
    amount: float = Field(default=0, ge=0)
    status: CommissionStatus = CommissionStatus.PENDING
    payout_date: Optional[date] = None


class CommissionCreate(CommissionBase, CreateModel):
    pass


class CommissionUpdate(UpdateModel):
    premium: Optional[float] = Field(None, ge=0)
    rate: Optional[float] = Field(None, ge=0, le=100)
    amount: Optional[float] = Field(None, ge=0)
    status: Optional[CommissionStatus] = None
    payout_date: Optional[date] = None


class CommissionRow(CommissionBase, RecordFields):
    deals: Optional[NameRef] = None


class Commission(CommissionBase, RecordFields):
    deal_name: Optional[str] = None


def commission_from_row(row: CommissionRow) -> Commission:
    return Commission(**row.model_dump(exclude={"deals"}), deal_name=_name(row.deals))


# Renewals


class RenewalBase(BaseModel):
    policy_id: str
    current_premium: float = Field(default=0, ge=0)
    renewal_premium: Optional[float] = Field(None, ge=0)
    status: RenewalStatus = RenewalStatus.UPCOMING
    renewal_date: date
    notes: Optional[str] = None


class RenewalCreate(RenewalBase, CreateModel):
    pass


class RenewalUpdate(UpdateModel):
    current_premium: Optional[float] = Field(None, ge=0)
    renewal_premium: Optional[float] = Field(None, ge=0)
    status: Optional[RenewalStatus] = None
    renewal_date: Optional[date] = None
    notes: Optional[str] = None


class RenewalRow(RenewalBase, RecordFields):
    policies: Optional[PolicyRef] = None


class Renewal(RenewalBase, RecordFields):
    policy_number: Optional[str] = None


def renewal_from_row(row: RenewalRow) -> Renewal:
    return Renewal(
        **row.model_dump(exclude={"policies"}),
        policy_number=row.policies.policy_number if row.policies else None,
    )


# Providers


class ProviderBase(BaseModel):
    name: str = Field(..., min_length=1)
    type: ProviderType = ProviderType.INSURER
    country: Optional[str] = None
    products: List[str] = Field(default_factory=list)
    api_enabled: bool = False
    status: ProviderStatus = ProviderStatus.ACTIVE
    contact_email: Optional[str] = None


class ProviderCreate(ProviderBase, CreateModel):
    contact_email: Optional[EmailStr] = None


class ProviderUpdate(UpdateModel):
    name: Optional[str] = Field(None, min_length=1)
    type: Optional[ProviderType] = None
    country: Optional[str] = None
    products: Optional[List[str]] = None
    api_enabled: Optional[bool] = None
    status: Optional[ProviderStatus] = None
    contact_email: Optional[EmailStr] = None


class ProviderRow(ProviderBase, RecordFields):
    products: Optional[List[str]] = None
    api_enabled: Optional[bool] = None


class Provider(ProviderBase, RecordFields):
    pass


def provider_from_row(row: ProviderRow) -> Provider:
    data = row.model_dump()
    data["products"] = row.products or []
    data["api_enabled"] = bool(row.api_enabled)
    return Provider(**data)


# User profiles


class UserProfileBase(BaseModel):
    user_id: str
    role: UserRole = UserRole.CLIENT
    full_name: Optional[str] = None
    phone: Optional[str] = None
    company_id: Optional[str] = None
    avatar_url: Optional[str] = None
    preferences: Dict[str, Any] = Field(default_factory=dict)
    created_by: Optional[str] = None


class UserProfileCreate(UserProfileBase, CreateModel):
    pass


class UserProfileUpdate(UpdateModel):
    role: Optional[UserRole] = None
    full_name: Optional[str] = None
    phone: Optional[str] = None
    company_id: Optional[str] = None
    avatar_url: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None


class UserProfileRow(UserProfileBase, RecordFields):
    preferences: Optional[Dict[str, Any]] = None
    companies: Optional[NameRef] = None


class UserProfile(UserProfileBase, RecordFields):
    company_name: Optional[str] = None


def user_profile_from_row(row: UserProfileRow) -> UserProfile:
    data = row.model_dump(exclude={"companies"})
    data["preferences"] = row.preferences or {}
    return UserProfile(**data, company_name=_name(row.companies))


# Customers (CRM contacts)


class CustomerBase(BaseModel):
    company_id: str
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    email: Optional[str] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    is_primary: bool = False
    notes: Optional[str] = None


class CustomerCreate(CustomerBase, CreateModel):
    email: Optional[EmailStr] = None


class CustomerUpdate(UpdateModel):
    first_name: Optional[str] = Field(None, min_length=1)
    last_name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    position: Optional[str] = None
    is_primary: Optional[bool] = None
    notes: Optional[str] = None


class CustomerRow(CustomerBase, RecordFields):
    companies: Optional[NameRef] = None


class Customer(CustomerBase, RecordFields):
    company_name: Optional[str] = None


def customer_from_row(row: CustomerRow) -> Customer:
    return Customer(**row.model_dump(exclude={"companies"}), company_name=_name(row.companies))


class CustomerInteractionBase(BaseModel):
    customer_id: str
    interaction_type: InteractionType = InteractionType.NOTE
    subject: Optional[str] = None
    notes: Optional[str] = None
    interaction_date: Optional[datetime] = None


class CustomerInteractionCreate(CustomerInteractionBase, CreateModel):
    pass


class CustomerInteractionRow(CustomerInteractionBase, RecordFields):
    pass


class CustomerInteraction(CustomerInteractionBase, RecordFields):
    pass


def customer_interaction_from_row(row: CustomerInteractionRow) -> CustomerInteraction:
    return CustomerInteraction(**row.model_dump())


# Countries


class CountryBase(BaseModel):
    name: str = Field(..., min_length=1)
    code: str = Field(..., min_length=2, max_length=2, description="ISO 3166-1 alpha-2")
    currency: Optional[str] = None
    is_active: bool = True


class CountryCreate(CountryBase, CreateModel):
    pass


class CountryUpdate(UpdateModel):
    name: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=2, max_length=2)
    currency: Optional[str] = None
    is_active: Optional[bool] = None


class CountryRow(CountryBase, RecordFields):
    pass


class Country(CountryBase, RecordFields):
    pass


def country_from_row(row: CountryRow) -> Country:
    return Country(**row.model_dump())


# Benefits


class BenefitBase(BaseModel):
    quote_id: str
    name: str = Field(..., min_length=1)
    benefit_type: BenefitType = BenefitType.MEDICAL
    coverage_level: Optional[str] = None
    premium: float = Field(default=0, ge=0)
    deductible: float = Field(default=0, ge=0)


class BenefitCreate(BenefitBase, CreateModel):
    pass


class BenefitUpdate(UpdateModel):
    name: Optional[str] = Field(None, min_length=1)
    benefit_type: Optional[BenefitType] = None
    coverage_level: Optional[str] = None
    premium: Optional[float] = Field(None, ge=0)
    deductible: Optional[float] = Field(None, ge=0)


class BenefitRow(BenefitBase, RecordFields):
    pass


class Benefit(BenefitBase, RecordFields):
    pass


def benefit_from_row(row: BenefitRow) -> Benefit:
    return Benefit(**row.model_dump())


# Activities (audit trail)


class ActivityBase(BaseModel):
    entity_type: str
    entity_id: str
    action: str
    description: Optional[str] = None
    old_value: Optional[Any] = None
    new_value: Optional[Any] = None
    user_id: Optional[str] = None


class ActivityCreate(ActivityBase, CreateModel):
    pass


class ActivityRow(ActivityBase, RecordFields):
    pass


class Activity(ActivityBase, RecordFields):
    pass


def activity_from_row(row: ActivityRow) -> Activity:
    return Activity(**row.model_dump())
