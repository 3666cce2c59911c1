"""elevation_cache

Revision ID: 3f1c9a7d2b48
Revises:
Create Date: 2026-10-19 09:12:31.204117

"""
from typing import Sequence, Union

from alembic import op


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b48'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema - Create elevation cache."""

    # Elevation cache - Độ cao theo ô tọa độ (làm tròn 3 chữ số, hết hạn sau 7 ngày)
    op.execute("""
        CREATE TABLE IF NOT EXISTS elevation_cache (
            id SERIAL PRIMARY KEY,
            cache_key VARCHAR(32) UNIQUE NOT NULL,
            latitude DECIMAL(10, 6) NOT NULL,
            longitude DECIMAL(10, 6) NOT NULL,
            elevation DECIMAL(8, 2),
            fetched_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    """)

    op.execute("CREATE INDEX IF NOT EXISTS idx_elevation_cache_fetched_at ON elevation_cache(fetched_at)")

    # Cleanup function, callable from cron: SELECT cleanup_expired_elevation_cache();
    op.execute("""
        CREATE OR REPLACE FUNCTION cleanup_expired_elevation_cache()
        RETURNS INTEGER AS $$
        DECLARE
            deleted_count INTEGER;
        BEGIN
            DELETE FROM elevation_cache WHERE fetched_at <= CURRENT_TIMESTAMP - INTERVAL '7 days';
            GET DIAGNOSTICS deleted_count = ROW_COUNT;
            RETURN deleted_count;
        END;
        $$ LANGUAGE plpgsql
    """)


def downgrade() -> None:
    """Downgrade schema - Drop elevation cache."""
    op.execute("DROP FUNCTION IF EXISTS cleanup_expired_elevation_cache()")
    op.execute("DROP INDEX IF EXISTS idx_elevation_cache_fetched_at")
    op.execute("DROP TABLE IF EXISTS elevation_cache CASCADE")
