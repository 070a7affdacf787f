"""
Relational storage: SQLAlchemy models, session management and repositories.
"""
