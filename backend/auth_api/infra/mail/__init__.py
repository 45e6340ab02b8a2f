from .smtp_notifier import LoggingNotifier, SMTPNotifier, redact_email

__all__ = ["LoggingNotifier", "SMTPNotifier", "redact_email"]
