"""
Warden - Attribute-based access control policy evaluation.

Warden decides whether a subject may perform an action on a resource, given
a flat set of allow/deny policies. It provides:
- Deny-overrides: any matching deny policy wins
- Default deny: no matching allow policy means deny
- Priority ordering with deterministic tie-breaks
- Auditable decisions that always carry a reason

Example usage:
    $ warden evaluate policies.yaml request.yaml
    $ warden check policies.yaml request.yaml
    $ warden explain policies.yaml request.yaml
"""

__version__ = "0.1.0"
__author__ = "Warden Contributors"

__all__ = [
    "__version__",
    "__author__",
]
