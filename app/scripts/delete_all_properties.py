"""
Delete All Properties Script
Removes every property together with its images, favorites and visits.

Usage: python -m app.scripts.delete_all_properties [--yes]
"""

import sys
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import get_service_supabase
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

NIL_UUID = "00000000-0000-0000-0000-000000000000"

# Dependent tables first
DEPENDENT_TABLES = ["property_images", "favorites", "visits"]


def count_properties(supabase: Client) -> int:
    result = supabase.table("properties").select("id", count="exact").execute()
    return result.count if result.count is not None else len(result.data or [])


def delete_all(supabase: Client) -> bool:
    """Delete dependent rows, then properties. Returns False if any table failed."""
    ok = True
    for table in DEPENDENT_TABLES + ["properties"]:
        try:
            # PostgREST refuses an unfiltered delete
            supabase.table(table).delete().neq("id", NIL_UUID).execute()
            logger.info(f"Deleted all rows from {table}")
        except Exception as e:
            logger.error(f"Error deleting {table}: {e}")
            ok = False
            if table == "properties":
                break
    return ok


def main():
    parser = argparse.ArgumentParser(description="Delete every property and related data")
    parser.add_argument("--yes", action="store_true", help="skip the confirmation prompt")
    args = parser.parse_args()

    try:
        supabase = get_service_supabase()
        total = count_properties(supabase)
        logger.info(f"Found {total} properties to delete")
        if total == 0:
            return
        if not args.yes:
            answer = input(f"Delete {total} properties and all related data? [y/N] ")
            if answer.strip().lower() not in ("y", "yes"):
                logger.info("Aborted")
                return
        if not delete_all(supabase):
            sys.exit(1)
        logger.info("All properties and related data have been deleted")
    except Exception as e:
        logger.error(f"Error during deletion: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
