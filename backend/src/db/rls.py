"""
Row-level security DDL for owner-scoped tables.

Policies compare each row's owner column with the subject that
`db.session.identity_scope` stores in transaction-local configuration, using the
same setting name Supabase's `auth.uid()` reads. Superusers and the table owner
bypass these policies; request traffic always runs under the restricted role.
"""
import re

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection

SUBJECT_SETTING = "request.jwt.claim.sub"
CLAIMS_SETTING = "request.jwt.claims"

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")

# (table, owner column) pairs protected by an owner policy
OWNED_TABLES = (
    ("profiles", "id"),
    ("pages", "owner_id"),
)


def row_security_statements(role: str) -> list[str]:
    """Return the DDL statements that install the role, grants and owner policies."""
    if not _IDENTIFIER.match(role):
        raise ValueError(f"Invalid role name: {role!r}")

    statements = [
        f"""
        DO $$
        BEGIN
            IF NOT EXISTS (SELECT 1 FROM pg_roles WHERE rolname = '{role}') THEN
                CREATE ROLE {role} NOLOGIN;
            END IF;
        END
        $$
        """,
        f"""
        CREATE OR REPLACE FUNCTION current_subject() RETURNS uuid
        LANGUAGE sql STABLE
        AS $$ SELECT nullif(current_setting('{SUBJECT_SETTING}', true), '')::uuid $$
        """,
        f"GRANT USAGE ON SCHEMA public TO {role}",
        f"GRANT EXECUTE ON FUNCTION current_subject() TO {role}",
    ]
    for table, owner_column in OWNED_TABLES:
        statements.extend([
            f"GRANT SELECT, INSERT, UPDATE ON {table} TO {role}",
            f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY",
            f"""
            CREATE POLICY {table}_owner_access ON {table}
                FOR ALL TO {role}
                USING ({owner_column} = current_subject())
                WITH CHECK ({owner_column} = current_subject())
            """,
        ])
    return statements


def drop_row_security_statements() -> list[str]:
    """Return the DDL statements that remove the owner policies."""
    statements = []
    for table, _ in OWNED_TABLES:
        statements.extend([
            f"DROP POLICY IF EXISTS {table}_owner_access ON {table}",
            f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY",
        ])
    statements.append("DROP FUNCTION IF EXISTS current_subject()")
    return statements


async def apply_row_security(connection: AsyncConnection, role: str) -> None:
    """Install row-level security on an existing schema."""
    for statement in row_security_statements(role):
        await connection.execute(text(statement))
