"""Core data models for the azurepreview provider"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Any, Optional, Union


class CategoryType(Enum):
    """What a budget tracks"""
    COST = "Cost"
    USAGE = "Usage"


class TimeGrainType(Enum):
    """Budget reset period"""
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUALLY = "Annually"
    BILLING_MONTH = "BillingMonth"
    BILLING_QUARTER = "BillingQuarter"
    BILLING_ANNUAL = "BillingAnnual"


class NotificationOperator(Enum):
    """Comparison applied between spend and a notification threshold"""
    EQUAL_TO = "EqualTo"
    GREATER_THAN = "GreaterThan"
    GREATER_THAN_OR_EQUAL_TO = "GreaterThanOrEqualTo"


class OfferType(Enum):
    """Enterprise Agreement offer a subscription is created under"""
    MS_AZR_0017P = "MS-AZR-0017P"  # EA production
    MS_AZR_0148P = "MS-AZR-0148P"  # EA dev/test


class DiagnosticSeverity(Enum):
    """Severity of a diagnostic reported back to the caller"""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ProviderConfiguration:
    """Provider-level settings used to authenticate and build clients"""
    subscription_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = field(default=None, repr=False)
    tenant_id: Optional[str] = None
    environment: str = "public"


@dataclass
class TimePeriod:
    """Inclusive budget window as RFC3339 strings"""
    start_date: str
    end_date: str


@dataclass
class TagFilter:
    """One tag constraint: the tag must carry one of the listed values"""
    name: str
    values: List[str] = field(default_factory=list)


@dataclass
class BudgetFilters:
    """Optional cost filter facets of a budget"""
    resource_groups: List[str] = field(default_factory=list)
    resources: List[str] = field(default_factory=list)
    meters: List[str] = field(default_factory=list)
    tags: List[TagFilter] = field(default_factory=list)


@dataclass
class NotificationConfig:
    """A named budget notification.

    Everything except the name is optional so that a notification the API
    returns without a body can still be represented.
    """
    name: str
    enabled: Optional[bool] = None
    operator: Optional[NotificationOperator] = None
    threshold: Optional[Union[int, float]] = None
    contact_emails: Optional[List[str]] = None
    contact_roles: Optional[List[str]] = None
    contact_groups: Optional[List[str]] = None


@dataclass
class BudgetConfig:
    """Declared (or read back) state of a consumption budget"""
    scope: str
    name: str
    category: CategoryType
    amount: int
    time_grain: TimeGrainType
    time_period: TimePeriod
    filters: Optional[BudgetFilters] = None
    notifications: List[NotificationConfig] = field(default_factory=list)


@dataclass
class SubscriptionConfig:
    """Declared (or read back) state of a subscription"""
    enrollment_account: str
    offer_type: OfferType
    name: Optional[str] = None
    owners: List[str] = field(default_factory=list)
    additional_parameters: Dict[str, str] = field(default_factory=dict)
    # Computed once the subscription exists
    subscription_id: Optional[str] = None
    tenant_id: Optional[str] = None


@dataclass
class ResourcesQuery:
    """Filters for the generic resource lookup"""
    subscription_id: Optional[str] = None
    name: Optional[str] = None
    resource_type: Optional[str] = None
    resource_group_name: Optional[str] = None
    tags: Dict[str, str] = field(default_factory=dict)


@dataclass
class ResourceSummary:
    """One resource returned by the lookup"""
    id: str
    name: Optional[str] = None
    type: Optional[str] = None
    location: Optional[str] = None


@dataclass
class ResourcesResult:
    """Result of a resource lookup"""
    id: str
    query: ResourcesQuery
    resources: List[ResourceSummary] = field(default_factory=list)


@dataclass
class ResourceData:
    """Working copy of one managed object.

    ``config`` is the desired configuration, ``id`` the remote identity (empty
    while the object is absent) and ``state`` the attributes last read back
    from the API.
    """
    config: Any = None
    id: str = ""
    state: Any = None


@dataclass
class Diagnostic:
    """A problem reported by a provider operation"""
    severity: DiagnosticSeverity
    summary: str
    detail: str = ""
    address: Optional[str] = None


@dataclass
class Diagnostics:
    """Diagnostics collected over one or more operations"""
    items: List[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(d.severity == DiagnosticSeverity.ERROR for d in self.items)

    def add_error(self, summary: str, detail: str = "", address: Optional[str] = None) -> None:
        self.items.append(Diagnostic(DiagnosticSeverity.ERROR, summary, detail, address))

    def add_warning(self, summary: str, detail: str = "", address: Optional[str] = None) -> None:
        self.items.append(Diagnostic(DiagnosticSeverity.WARNING, summary, detail, address))

    def extend(self, other: "Diagnostics") -> None:
        self.items.extend(other.items)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)
