"""Create bill payment reconciliation table."""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "20261019_01_bill_payments"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


invoice_status_enum = sa.Enum("EXPIRED", "PENDING", "PAID", name="invoice_status_enum")


def upgrade() -> None:
    op.create_table(
        "bill_payments",
        sa.Column("domain", sa.String(), nullable=False),
        sa.Column("reference", sa.String(), nullable=False),
        sa.Column("period", sa.String(), nullable=False),
        sa.Column("invoice", sa.String(), nullable=False),
        sa.Column("invoice_status", invoice_status_enum, nullable=False, server_default="PENDING"),
        sa.Column("pending_response", sa.JSON(), nullable=False),
        sa.Column("paid_response", sa.JSON(), nullable=True),
        sa.Column("notification_sent_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("domain", "reference", "period", name="pk_bill_payments"),
    )
    op.create_index(
        "ix_bill_payments_status_created_at",
        "bill_payments",
        ["invoice_status", "created_at"],
    )


def downgrade() -> None:
    op.drop_index("ix_bill_payments_status_created_at", table_name="bill_payments")
    op.drop_table("bill_payments")
    invoice_status_enum.drop(op.get_bind(), checkfirst=True)
