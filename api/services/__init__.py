"""
API Services Package

Service objects the routes depend on, each provided through a FastAPI
dependency function.
"""

from api.services.email_service import EmailService, get_email_service
from api.services.triage_service import TriageService, get_mail_source, get_triage_service

__all__ = ["EmailService", "get_email_service", "TriageService", "get_mail_source", "get_triage_service"]
