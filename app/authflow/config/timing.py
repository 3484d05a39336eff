"""Timing constants for identity authority calls"""

# Request timeout in seconds
API_TIMEOUT = 30

# Seconds before token expiry at which a session is treated as expired
SESSION_EXPIRY_LEEWAY = 30

__all__ = [
    'API_TIMEOUT',
    'SESSION_EXPIRY_LEEWAY'
]
