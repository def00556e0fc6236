"""Shared validation utilities"""

import re
from typing import Optional

TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$")
SUBDOMAIN_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")
EMAIL_PATTERN = re.compile(r"^\w+([.+-]?\w+)*@\w+([.-]?\w+)*(\.\w{2,})+$")

MINUTES_PER_DAY = 24 * 60


def validate_time(value: Optional[str]) -> Optional[str]:
    """
    Validate an HH:MM time string and normalize it to zero-padded form.

    Raises:
        ValueError: If the value is not a valid 24h clock time
    """
    if value is None:
        return value
    value = value.strip()
    if not TIME_PATTERN.match(value):
        raise ValueError("Time must be in HH:MM format")
    hours, minutes = value.split(":")
    return f"{int(hours):02d}:{int(minutes):02d}"


def time_to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def minutes_to_time(total_minutes: int) -> str:
    return f"{total_minutes // 60:02d}:{total_minutes % 60:02d}"


def validate_email(email: Optional[str]) -> Optional[str]:
    """
    Validate email format.

    Returns:
        Lowercase email address

    Raises:
        ValueError: If email format is invalid
    """
    if not email:
        return email

    email = email.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValueError("Please add a valid email")
    return email


def validate_subdomain(subdomain: Optional[str]) -> Optional[str]:
    if subdomain is None:
        return subdomain
    subdomain = subdomain.strip().lower()
    if not SUBDOMAIN_PATTERN.match(subdomain):
        raise ValueError("Subdomain can only contain letters, numbers, and hyphens")
    return subdomain
