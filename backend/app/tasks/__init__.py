# backend/app/tasks/__init__.py
"""
Celery tasks package for MentorMatch.

Periodic booking maintenance: auto-declining expired requests, completing
finished sessions and flagging sessions that lack a meeting link.
"""
