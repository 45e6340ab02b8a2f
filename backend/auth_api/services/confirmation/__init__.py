from .service import CONFIRMATION_SUBJECT, EmailConfirmationService

__all__ = ["CONFIRMATION_SUBJECT", "EmailConfirmationService"]
