"""
SQLAlchemy database models.
"""

from .base import Base, TimestampMixin
from .competitor import Competitor
from .payment import AICredits, Payment, PaymentMethod, PaymentStatus
from .profile import Profile, SocialLink, SubscriptionTier, UserRole
from .task import ContentFormat, InspirationLink, LinkType, Task, TaskCategory, TaskStatus
from .template import Template, TemplateVisibility

__all__ = [
    "Base",
    "TimestampMixin",
    "Profile",
    "SocialLink",
    "UserRole",
    "SubscriptionTier",
    "Task",
    "TaskCategory",
    "TaskStatus",
    "ContentFormat",
    "InspirationLink",
    "LinkType",
    "Competitor",
    "Template",
    "TemplateVisibility",
    "Payment",
    "PaymentStatus",
    "PaymentMethod",
    "AICredits",
]
