"""API parameter types.

This module defines Literal type aliases for request parameters that have
constrained values. They are used for type checking in the API layer and
CLI commands so only values Square accepts are sent.

Note: These are separate from the StrEnum types in models/ which describe
results returned to callers.
"""

from typing import Literal

# =============================================================================
# OAuth Types
# =============================================================================

GrantType = Literal["authorization_code", "refresh_token"]
"""ObtainToken grant types this client uses."""
