"""Entity services bound to the restricted client."""

from dataclasses import dataclass

from insura_ops.database.client import SupabaseClient
from insura_ops.services.activity_service import ActivityService
from insura_ops.services.base_service import BaseService
from insura_ops.services.benefit_service import BenefitService
from insura_ops.services.claim_service import ClaimService
from insura_ops.services.commission_service import CommissionService
from insura_ops.services.company_service import CompanyService
from insura_ops.services.country_service import CountryService
from insura_ops.services.customer_service import CustomerService
from insura_ops.services.deal_service import DealService
from insura_ops.services.employee_service import EmployeeService
from insura_ops.services.policy_service import PolicyService
from insura_ops.services.provider_service import ProviderService
from insura_ops.services.quote_service import QuoteService
from insura_ops.services.renewal_service import RenewalService
from insura_ops.services.user_profile_service import UserProfileService


@dataclass
class Services:
    companies: CompanyService
    employees: EmployeeService
    quotes: QuoteService
    policies: PolicyService
    claims: ClaimService
    deals: DealService
    commissions: CommissionService
    renewals: RenewalService
    providers: ProviderService
    customers: CustomerService
    countries: CountryService
    benefits: BenefitService
    user_profiles: UserProfileService
    activities: ActivityService


def create_services(client: SupabaseClient) -> Services:
    """Build every entity service on one client; quotes share the deal and activity services."""
    activities = ActivityService(client)
    deals = DealService(client)
    return Services(
        companies=CompanyService(client),
        employees=EmployeeService(client),
        quotes=QuoteService(client, activities=activities, deals=deals),
        policies=PolicyService(client),
        claims=ClaimService(client),
        deals=deals,
        commissions=CommissionService(client),
        renewals=RenewalService(client),
        providers=ProviderService(client),
        customers=CustomerService(client),
        countries=CountryService(client),
        benefits=BenefitService(client),
        user_profiles=UserProfileService(client),
        activities=activities,
    )


__all__ = [
    "BaseService",
    "Services",
    "create_services",
    "ActivityService",
    "BenefitService",
    "ClaimService",
    "CommissionService",
    "CompanyService",
    "CountryService",
    "CustomerService",
    "DealService",
    "EmployeeService",
    "PolicyService",
    "ProviderService",
    "QuoteService",
    "RenewalService",
    "UserProfileService",
]
