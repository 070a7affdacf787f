"""
Inbox Desk HTTP API.

FastAPI application exposing the users, contacts, notes and email
resources, and the Gmail triage endpoints.
"""
