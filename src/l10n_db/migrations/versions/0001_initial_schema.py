"""Initial localization schema.

Notes:
- Primary keys are strings (uuid4 by default, client-supplied on import).
- Enums use VARCHAR + CHECK constraints (native_enum=False).
- Service ownership lives in ``service_owner`` rows so access predicates are
  portable subqueries on SQLite and Postgres alike.
"""

from __future__ import annotations

from typing import Optional

from alembic import op

from l10n_db.base import Base

# Revision identifiers, used by Alembic.
revision = "0001_initial_schema"
down_revision: Optional[str] = None
branch_labels: Optional[str] = None
depends_on: Optional[str] = None


def upgrade() -> None:
    # Import models so Base.metadata is populated.
    import l10n_db.models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.create_all(bind=bind)


def downgrade() -> None:
    import l10n_db.models  # noqa: F401

    bind = op.get_bind()
    Base.metadata.drop_all(bind=bind)
