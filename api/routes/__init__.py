"""
API Routes Package

One router module per resource.
"""

from api.routes import contacts
from api.routes import emails
from api.routes import gmail
from api.routes import users
from api.routes import webhooks

__all__ = ["contacts", "emails", "gmail", "users", "webhooks"]
