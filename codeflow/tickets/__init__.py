"""
Tickets - Puzzles packaged as units of sprint work.
"""

from .catalogue import TicketType, TicketDetails, TICKET_DETAILS, TICKET_NAMES
from .ticket import Ticket, TicketStatus
from .factory import TicketFactory, story_points

__all__ = [
    "TicketType",
    "TicketDetails",
    "TICKET_DETAILS",
    "TICKET_NAMES",
    "Ticket",
    "TicketStatus",
    "TicketFactory",
    "story_points",
]
