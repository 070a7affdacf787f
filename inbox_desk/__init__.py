"""
Inbox Desk core package.

Subpackages:
    triage: unread-mail triage pipeline (models, classifier, cache, ranking)
    integrations: Gmail and Groq adapters
    storage: SQLAlchemy models and repositories for the CRUD surface
"""

__version__ = "1.0.0"
