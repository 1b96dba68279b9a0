import asyncio
import sys

from demo_server.config import Config
from demo_server.exceptions import ConfigError, DatabaseError
from demo_server.tools.toolkit import Toolkit


def verify_connection(toolkit: Toolkit) -> bool:
    print("Testing database connection...")
    try:
        result = toolkit.database.execute_query("SELECT version() AS version")
        print(f"✅ Database connection successful. {result.rows[0]['version']}")
        return True
    except DatabaseError as e:
        print(f"❌ Database connection failed: {e}")
        return False


def verify_catalog(toolkit: Toolkit) -> bool:
    print("\nReading the catalog...")
    try:
        schemas = toolkit.queries.get_schemas()
        tables = toolkit.queries.get_tables()
        print(f"✅ {len(schemas)} schema(s), {len(tables)} table(s) in 'public'")
        return True
    except DatabaseError as e:
        print(f"❌ Catalog read failed: {e}")
        return False


async def main() -> int:
    print("Starting Verification...")
    try:
        config = Config.from_env()
    except ConfigError as e:
        print(f"❌ {e}")
        return 1

    toolkit = Toolkit(config)
    try:
        db_ok = await asyncio.to_thread(verify_connection, toolkit)
        catalog_ok = db_ok and await asyncio.to_thread(verify_catalog, toolkit)
    finally:
        toolkit.close()

    if db_ok and catalog_ok:
        print("\n🎉 Verification Complete: All systems go!")
        return 0
    print("\n⚠️ Verification Completed with Issues.")
    return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
