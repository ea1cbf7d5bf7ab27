"""
Telemetry Event Names

Centralized event name constants following the naming convention:
{entity}_{action}
"""


class TelemetryEvents:
    """Centralized telemetry event names."""

    # Request lifecycle
    REQUEST_COMPLETED = "request_completed"
    REQUEST_FAILED = "request_failed"

    # Tracking tokens
    TOKEN_ISSUED = "token_issued"
    TOKEN_VERIFIED = "token_verified"
    TOKEN_REJECTED = "token_rejected"
    TOKEN_SIGNATURE_REJECTED = "token_signature_rejected"
    TOKEN_REVOKED = "token_revoked"
    TOKENS_REVOKED_FOR_SUBJECT = "tokens_revoked_for_subject"
    REVOCATIONS_PRUNED = "revocations_pruned"

    # Engagement events
    EVENT_RECORDED = "event_recorded"
    EVENT_DEDUPLICATED = "event_deduplicated"
    EVENT_RECORD_FAILED = "event_record_failed"

    # Aggregation
    SNAPSHOTS_GENERATED = "snapshots_generated"

    # Security events
    AUTHENTICATION_FAILED = "authentication_failed"

    # Application lifecycle
    APP_STARTED = "app_started"
    APP_STOPPED = "app_stopped"
