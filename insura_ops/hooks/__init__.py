"""Data-fetching hooks over the entity services."""

from typing import Dict

from insura_ops.hooks.entity_hooks import EntityHooks, QuoteHooks
from insura_ops.hooks.notifications import Notifier, Toast, ToastVariant
from insura_ops.hooks.query_client import QueryClient, QueryState, make_query_key
from insura_ops.services import Services

# service attribute -> (cache tag, toast label)
HOOK_LABELS = {
    "companies": ("companies", "Company"),
    "employees": ("employees", "Employee"),
    "quotes": ("quotes", "Quote"),
    "policies": ("policies", "Policy"),
    "claims": ("claims", "Claim"),
    "deals": ("deals", "Deal"),
    "commissions": ("commissions", "Commission"),
    "renewals": ("renewals", "Renewal"),
    "providers": ("providers", "Provider"),
    "customers": ("customers", "Customer"),
    "countries": ("countries", "Country"),
    "benefits": ("benefits", "Benefit"),
    "user_profiles": ("user_profiles", "User profile"),
    "activities": ("activities", "Activity"),
}


def build_hooks(services: Services, query_client: QueryClient, notifier: Notifier) -> Dict[str, EntityHooks]:
    """Build one hook bundle per entity, all sharing a cache and notifier."""
    hooks: Dict[str, EntityHooks] = {}
    for name, (tag, label) in HOOK_LABELS.items():
        hook_class = QuoteHooks if name == "quotes" else EntityHooks
        hooks[name] = hook_class(getattr(services, name), tag, query_client, notifier, label=label)
    return hooks


__all__ = [
    "EntityHooks",
    "Notifier",
    "QueryClient",
    "QueryState",
    "QuoteHooks",
    "Toast",
    "ToastVariant",
    "build_hooks",
    "make_query_key",
]
