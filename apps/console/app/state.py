# apps/console/app/state.py

from typing import Any, Dict, List, Optional, TypedDict


# One page load moves through:
#   initializing -> checking_auth -> (redirecting | loading) -> (ready | not_found | error)
class GuardState(TypedDict, total=False):
    # Input state
    page: str
    allowed_roles: List[str]  # empty list: any signed-in role
    denied_redirect: str
    params: Dict[str, Any]

    # Populated by nodes
    status: str
    role: Optional[str]
    redirect_to: Optional[str]
    data: Any

    # Centralized error handling
    notification: Optional[str]
    error: Optional[str]
