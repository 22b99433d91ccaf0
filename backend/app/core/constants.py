"""Application-wide constants for the MentorMatch booking API."""

from __future__ import annotations

import os

# Branding
BRAND_NAME = "MentorMatch"
API_TITLE = f"{BRAND_NAME} Booking API"
API_DESCRIPTION = "Mentor availability, booking and session lifecycle"
API_VERSION = "1.0.0"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Session duration constraints (minutes)
MIN_SESSION_DURATION = 15
MAX_SESSION_DURATION = 180

# Text constraints
MIN_SUBJECT_LENGTH = 3
MAX_SUBJECT_LENGTH = 200
MAX_NOTES_LENGTH = 1000
MAX_REASON_LENGTH = 500
MAX_REVIEW_LENGTH = 1000

# CORS
ALLOWED_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000").split(",")
    if origin.strip()
]
