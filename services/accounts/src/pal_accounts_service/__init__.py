"""
Pal Accounts Service
====================

Anonymous account provisioning and authentication:
- Pseudonymous accounts keyed by a salted fingerprint of the client address
- Trusted reverse proxy aware client address resolution
- HMAC-signed session tokens for downstream services
"""

__version__ = "0.1.0"

from .app import create_app

__all__ = [
    "create_app",
    "__version__",
]
