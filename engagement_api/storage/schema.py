"""PostgreSQL schema definitions for the engagement tracking service."""

# Tracking tokens - hash of every issued or revoked token, never the raw token
CREATE_TRACKING_TOKENS_TABLE = """
CREATE TABLE IF NOT EXISTS tracking_tokens (
    token_hash TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    is_revoked BOOLEAN NOT NULL DEFAULT FALSE,
    expires_at TIMESTAMPTZ NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_tracking_tokens_user ON tracking_tokens(user_id);
CREATE INDEX IF NOT EXISTS idx_tracking_tokens_expiry ON tracking_tokens(expires_at);
"""

# Analytics events - append-only
CREATE_ANALYTICS_EVENTS_TABLE = """
CREATE TABLE IF NOT EXISTS analytics_events (
    id UUID PRIMARY KEY,
    user_id TEXT,
    newsletter_id TEXT,
    article_id TEXT,
    session_id TEXT,
    event_type VARCHAR(50) NOT NULL,
    metadata JSONB NOT NULL DEFAULT '{}'::jsonb,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_analytics_events_user ON analytics_events(user_id);
CREATE INDEX IF NOT EXISTS idx_analytics_events_newsletter ON analytics_events(newsletter_id);
CREATE INDEX IF NOT EXISTS idx_analytics_events_article ON analytics_events(article_id);
CREATE INDEX IF NOT EXISTS idx_analytics_events_session ON analytics_events(session_id);
CREATE INDEX IF NOT EXISTS idx_analytics_events_type_time
    ON analytics_events(event_type, created_at DESC);
CREATE INDEX IF NOT EXISTS idx_analytics_events_created_at ON analytics_events(created_at DESC);
"""

# Daily snapshots - NULL scope keys compare equal so regeneration overwrites
CREATE_ANALYTICS_SNAPSHOTS_TABLE = """
CREATE TABLE IF NOT EXISTS analytics_snapshots (
    id BIGSERIAL PRIMARY KEY,
    snapshot_date DATE NOT NULL,
    newsletter_id TEXT,
    article_id TEXT,
    class_id TEXT,
    metric_name VARCHAR(50) NOT NULL,
    metric_value NUMERIC NOT NULL DEFAULT 0,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT uq_analytics_snapshots_key UNIQUE NULLS NOT DISTINCT
        (snapshot_date, newsletter_id, article_id, class_id, metric_name)
);

CREATE INDEX IF NOT EXISTS idx_analytics_snapshots_date ON analytics_snapshots(snapshot_date);
CREATE INDEX IF NOT EXISTS idx_analytics_snapshots_newsletter
    ON analytics_snapshots(newsletter_id);
CREATE INDEX IF NOT EXISTS idx_analytics_snapshots_class ON analytics_snapshots(class_id);
"""

# Click-tracking destinations
CREATE_TRACKED_LINKS_TABLE = """
CREATE TABLE IF NOT EXISTS tracked_links (
    link_id TEXT PRIMARY KEY,
    url TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

# Complete schema initialization
INIT_SCHEMA = (
    CREATE_TRACKING_TOKENS_TABLE
    + CREATE_ANALYTICS_EVENTS_TABLE
    + CREATE_ANALYTICS_SNAPSHOTS_TABLE
    + CREATE_TRACKED_LINKS_TABLE
)
