from .errors import (
    MutationError,
    RemoteRejected,
    ValidationFailed,
    DependencyBlocked,
    StaleReference,
)
from .remote_store import (
    RemoteStore,
    RemoteResult,
    RemoteError,
    ChangeEvent,
    ChangeKind,
    SqlAlchemyRemoteStore,
)
from .local_cache import LocalCache, CacheSnapshot
from .mutation_coordinator import MutationCoordinator, MutationOutcome, EntityRules, validate_ref
from .change_feed import ChangeFeedListener
from .aggregation_service import AggregationService, AttendanceRate, ReportCardCell
from .app_state import AppState
from .session_store import SessionStore, public_user
from .auth_service import AuthService, SessionUser

__all__ = [
    "MutationError",
    "RemoteRejected",
    "ValidationFailed",
    "DependencyBlocked",
    "StaleReference",
    "RemoteStore",
    "RemoteResult",
    "RemoteError",
    "ChangeEvent",
    "ChangeKind",
    "SqlAlchemyRemoteStore",
    "LocalCache",
    "CacheSnapshot",
    "MutationCoordinator",
    "MutationOutcome",
    "EntityRules",
    "validate_ref",
    "ChangeFeedListener",
    "AggregationService",
    "AttendanceRate",
    "ReportCardCell",
    "AppState",
    "SessionStore",
    "public_user",
    "AuthService",
    "SessionUser",
]
