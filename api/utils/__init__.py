# api/utils/__init__.py
from api.utils.responses import get_state, outcome_response, is_confirmed

__all__ = ["get_state", "outcome_response", "is_confirmed"]
