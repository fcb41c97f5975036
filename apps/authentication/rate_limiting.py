"""
Rate limiting utilities for login and emergency request submission.
Uses Django cache to track submissions and failed attempts.
"""
from django.core.cache import cache
from django.utils import timezone


def check_submission_rate_limit(identifier, action='submission', limit_seconds=60):
    """
    Check if a submission is rate limited, and start the cooldown if it is not.

    Args:
        identifier: Email address (or other key) the submission is made for
        action: Action type (e.g., 'emergency_request')
        limit_seconds: Cooldown period in seconds

    Returns:
        tuple: (is_allowed: bool, wait_time: int) where wait_time is seconds remaining
    """
    cache_key = f"rate_limit:{action}:{identifier.lower()}"
    last_sent = cache.get(cache_key)

    if last_sent:
        elapsed = (timezone.now() - last_sent).total_seconds()
        if elapsed < limit_seconds:
            wait_time = int(limit_seconds - elapsed)
            return False, wait_time

    cache.set(cache_key, timezone.now(), timeout=limit_seconds)
    return True, 0


def clear_submission_rate_limit(identifier, action='submission'):
    """Drop the cooldown, e.g. when the submission it guarded was rejected."""
    cache.delete(f"rate_limit:{action}:{identifier.lower()}")


def check_attempt_limit(identifier, action='login', max_attempts=5, window_minutes=10):
    """
    Check if failed attempts are within limits.

    Args:
        identifier: Unique identifier (email)
        action: Action type
        max_attempts: Maximum allowed attempts
        window_minutes: Time window for attempts

    Returns:
        tuple: (is_allowed: bool, attempts_remaining: int, reset_time: int)
    """
    cache_key = f"attempts:{action}:{identifier.lower()}"
    attempts_data = cache.get(cache_key, {'count': 0, 'first_attempt': timezone.now()})

    elapsed = (timezone.now() - attempts_data['first_attempt']).total_seconds()
    if elapsed > (window_minutes * 60):
        attempts_data = {'count': 0, 'first_attempt': timezone.now()}

    current_attempts = attempts_data['count']

    if current_attempts >= max_attempts:
        reset_time = int((window_minutes * 60) - elapsed)
        return False, 0, reset_time

    return True, max_attempts - current_attempts, 0


def increment_failed_attempts(identifier, action='login', max_attempts=5, window_minutes=10):
    """
    Increment failed attempt counter.

    Returns:
        int: Attempts remaining (0 if limit reached)
    """
    cache_key = f"attempts:{action}:{identifier.lower()}"
    attempts_data = cache.get(cache_key, {'count': 0, 'first_attempt': timezone.now()})

    elapsed = (timezone.now() - attempts_data['first_attempt']).total_seconds()
    if elapsed > (window_minutes * 60):
        attempts_data = {'count': 1, 'first_attempt': timezone.now()}
    else:
        attempts_data['count'] += 1

    # Store for the full window duration
    cache.set(cache_key, attempts_data, timeout=window_minutes * 60)

    return max(0, max_attempts - attempts_data['count'])


def clear_failed_attempts(identifier, action='login'):
    """Clear failed attempt counter after a successful login."""
    cache.delete(f"attempts:{action}:{identifier.lower()}")
