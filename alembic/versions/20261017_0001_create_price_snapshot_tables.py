"""create scrape_jobs and scraped_products tables

Revision ID: 20261017_0001
Revises:
Create Date: 2026-10-17 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "scrape_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("site_key", sa.String(length=64), nullable=False),
        sa.Column("site_name", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False),
        sa.Column("products_requested", sa.Integer(), nullable=False),
        sa.Column("products_scraped", sa.Integer(), nullable=False),
        sa.Column("total_products", sa.Integer(), nullable=False),
        sa.Column("fallback_count", sa.Integer(), nullable=False),
        sa.Column("error_count", sa.Integer(), nullable=False),
        sa.Column("errors", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("requested_urls", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("scraped_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_scrape_jobs"),
    )
    op.create_index("ix_scrape_jobs_site_key", "scrape_jobs", ["site_key"], unique=False)
    op.create_index("ix_scrape_jobs_scraped_at", "scrape_jobs", ["scraped_at"], unique=False)
    op.create_index(
        "ix_scrape_jobs_site_key_status",
        "scrape_jobs",
        ["site_key", "status"],
        unique=False,
    )

    op.create_table(
        "scraped_products",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("job_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("product_id", sa.String(length=96), nullable=False),
        sa.Column("site_key", sa.String(length=64), nullable=False),
        sa.Column("site_name", sa.String(length=255), nullable=False),
        sa.Column("url", sa.Text(), nullable=False),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("original_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("currency", sa.String(length=8), nullable=False),
        sa.Column("availability", sa.String(length=32), nullable=False),
        sa.Column("stock_level", sa.Integer(), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("brand", sa.String(length=255), nullable=True),
        sa.Column("sku", sa.String(length=128), nullable=True),
        sa.Column("category", sa.String(length=120), nullable=True),
        sa.Column("tags", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("rating", sa.Float(), nullable=True),
        sa.Column("review_count", sa.Integer(), nullable=True),
        sa.Column("origin", sa.String(length=16), nullable=False),
        sa.Column("scraped_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(
            ["job_id"],
            ["scrape_jobs.id"],
            name="fk_scraped_products_job_id_scrape_jobs",
            ondelete="SET NULL",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_scraped_products"),
        sa.UniqueConstraint(
            "product_id",
            "scraped_at",
            name="uq_scraped_products_product_id_scraped_at",
        ),
    )
    op.create_index("ix_scraped_products_site_key", "scraped_products", ["site_key"], unique=False)
    op.create_index("ix_scraped_products_category", "scraped_products", ["category"], unique=False)
    op.create_index("ix_scraped_products_scraped_at", "scraped_products", ["scraped_at"], unique=False)
    op.create_index(
        "ix_scraped_products_site_key_scraped_at",
        "scraped_products",
        ["site_key", "scraped_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_scraped_products_site_key_scraped_at", table_name="scraped_products")
    op.drop_index("ix_scraped_products_scraped_at", table_name="scraped_products")
    op.drop_index("ix_scraped_products_category", table_name="scraped_products")
    op.drop_index("ix_scraped_products_site_key", table_name="scraped_products")
    op.drop_table("scraped_products")
    op.drop_index("ix_scrape_jobs_site_key_status", table_name="scrape_jobs")
    op.drop_index("ix_scrape_jobs_scraped_at", table_name="scrape_jobs")
    op.drop_index("ix_scrape_jobs_site_key", table_name="scrape_jobs")
    op.drop_table("scrape_jobs")
