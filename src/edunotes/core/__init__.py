"""Core business logic module.

Modules:
- errors: Error taxonomy for rejected operations
- authorization: Principal and the access/admin rules
- accounts: Account provisioning and flag management
- content: Subjects, notes and videos
- storage: PDF upload storage
- mailer: Sign-in link delivery
- auth: Passwordless sign-in and session tokens
- dashboard: Home view aggregation
"""

__all__ = [
    "errors",
    "authorization",
    "accounts",
    "content",
    "storage",
    "mailer",
    "auth",
    "dashboard",
]
