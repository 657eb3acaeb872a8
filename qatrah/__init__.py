"""
Qatrah: record-level access control for a blood-donation coordination
platform.

Every read and write on user profiles, blood banks, campaigns, blood
requests, donations and notifications goes through a single policy engine
(`qatrah.app.domain.policy.evaluate`) that combines ownership, the admin
role, public-read exceptions and blood-request lifecycle gating.
"""

__all__ = [
    "Action",
    "IdentityContext",
    "ResourceDescriptor",
    "ResourceKind",
    "Verdict",
    "evaluate",
]

from .app.domain.policy import (
    Action,
    IdentityContext,
    ResourceDescriptor,
    ResourceKind,
    Verdict,
    evaluate,
)

__version__ = "0.1.0"
