from mautrix.util.async_db import UpgradeTable, Scheme, Connection

upgrade_table = UpgradeTable()

@upgrade_table.register(description="Initial users, webhooks and matrix_rooms tables")
async def upgrade_v1(conn: Connection, scheme: Scheme) -> None:
    await conn.execute("""
        CREATE TABLE users (
            id TEXT PRIMARY KEY,
            service_username TEXT NOT NULL UNIQUE,
            user_role TEXT NOT NULL
        )
    """)
    password_type = "BLOB" if scheme == Scheme.SQLITE else "BYTEA"
    await conn.execute(f"""
        CREATE TABLE webhooks (
            id TEXT PRIMARY KEY,
            arr_type TEXT NOT NULL,
            username TEXT NOT NULL,
            password {password_type} NOT NULL,
            user_id TEXT NOT NULL REFERENCES users (id) ON DELETE CASCADE
        )
    """)
    await conn.execute("""
        CREATE TABLE matrix_rooms (
            id TEXT PRIMARY KEY,
            room_id TEXT NOT NULL,
            webhook_id TEXT NOT NULL REFERENCES webhooks (id) ON DELETE CASCADE
        )
    """)

@upgrade_table.register(description="Index on matrix_rooms.webhook_id")
async def upgrade_v2(conn: Connection, scheme: Scheme) -> None:
    await conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_matrix_rooms_webhook_id ON matrix_rooms (webhook_id)"
    )
