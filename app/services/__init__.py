"""Outbound collaborators: email delivery and image storage."""

from app.services.mailer import Mailer, MailResult
from app.services.storage import Storage, UploadResult

__all__ = ["Mailer", "MailResult", "Storage", "UploadResult"]
