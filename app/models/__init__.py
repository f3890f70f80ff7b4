# Database models package
from .generated_idea import GeneratedIdea
from .saved_idea import SavedIdea
from .subscription import Subscription
from .email_lead import EmailLead

__all__ = ["GeneratedIdea", "SavedIdea", "Subscription", "EmailLead"]
