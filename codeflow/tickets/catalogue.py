"""
Ticket Catalogue - Ticket types and flavour text.

Each ticket type carries:
- A title prefix
- A fixed description
- A difficulty (locked-tile range, configured in GameConfig)
"""

from dataclasses import dataclass
from enum import Enum


class TicketType(Enum):
    """Kinds of work a ticket represents, easiest first."""
    NEW_FEATURE = "New Feature"
    BUG_FIX = "Bug Fix"
    LEGACY_REWRITE = "Legacy Rewrite"


@dataclass(frozen=True)
class TicketDetails:
    """Flavour text for a ticket type."""
    title_prefix: str
    description: str


TICKET_DETAILS: dict[TicketType, TicketDetails] = {
    TicketType.NEW_FEATURE: TicketDetails(
        title_prefix="Feat:",
        description="Implement a brand new module or functionality.",
    ),
    TicketType.BUG_FIX: TicketDetails(
        title_prefix="Fix:",
        description="Resolve an issue in existing code.",
    ),
    TicketType.LEGACY_REWRITE: TicketDetails(
        title_prefix="Refactor:",
        description="Modernize or improve an old part of the system.",
    ),
}


# ============================================================================
# Title Catalogue
# ============================================================================

TICKET_NAMES: list[str] = [
    "User Auth System",
    "Payment Gateway Integration",
    "Search Algorithm",
    "UI Theme Engine",
    "Notification Service",
    "Data Analytics Pipeline",
    "API Versioning",
    "Caching Layer",
    "Login Page Crash",
    "Data Sync Error",
    "Security Flaw",
    "Performance Bottleneck",
    "Old Database Module",
    "Deprecated UI Library",
    "Monolithic Service",
    "Tech Debt Cleanup",
]


def get_details(ticket_type: TicketType) -> TicketDetails:
    """Look up flavour text for a ticket type."""
    return TICKET_DETAILS[ticket_type]
