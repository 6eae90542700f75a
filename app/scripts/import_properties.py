"""
Import Properties Script
Loads properties scraped from the legacy website (JSON export) into the
properties and property_images tables.

Usage: python -m app.scripts.import_properties properties-export.json
"""

import sys
import json
import argparse
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from app.database.supabase_client import get_service_supabase
from app.modules.properties.utils import generate_slug, generate_reference
from datetime import datetime, timezone
from typing import Any, Dict, List
from supabase import Client
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def map_property(item: Dict[str, Any]) -> Dict[str, Any]:
    """Map one scraped record to a properties row"""
    bedrooms = item.get("bedrooms")
    return {
        "title": item.get("title") or "Imóvel sem título",
        "slug": generate_slug(item.get("title") or item.get("reference") or "imovel"),
        "reference": item.get("reference") or generate_reference("REF"),
        "description": item.get("description"),
        "nature": item.get("nature") or "apartment",
        "business_type": item.get("business_type") or "sale",
        "status": "published",
        "price": item.get("price"),
        "price_on_request": bool(item.get("price_on_request")),
        "district": item.get("district"),
        "municipality": item.get("municipality"),
        "parish": item.get("parish"),
        "bedrooms": bedrooms,
        "bathrooms": item.get("bathrooms"),
        "gross_area": item.get("gross_area"),
        "useful_area": item.get("useful_area"),
        "construction_status": item.get("construction_status") or "used",
        "energy_certificate": item.get("energy_certificate"),
        "typology": f"T{bedrooms}" if bedrooms else None,
        "featured": False,
        "views_count": 0,
    }


def map_images(property_id: str, urls: List[str]) -> List[Dict[str, Any]]:
    now = datetime.now(timezone.utc).isoformat()
    return [
        {"property_id": property_id, "url": url, "is_cover": i == 0, "order": i, "created_at": now}
        for i, url in enumerate(urls)
    ]


def import_property(supabase: Client, item: Dict[str, Any]) -> str:
    result = supabase.table("properties").insert(map_property(item)).execute()
    if not result.data:
        raise RuntimeError("No result returned from insert")
    property_id = result.data[0]["id"]

    images = map_images(property_id, item.get("images") or [])
    for image in images:
        try:
            supabase.table("property_images").insert(image).execute()
        except Exception as e:
            logger.warning(f"Failed to import image {image['order'] + 1} for {property_id}: {e}")
    logger.info(f"Imported {item.get('title') or property_id} ({len(images)} images)")
    return property_id


def import_properties(supabase: Client, items: List[Dict[str, Any]]) -> Dict[str, int]:
    imported = 0
    failed = 0
    for index, item in enumerate(items, start=1):
        logger.info(f"Importing {index}/{len(items)}: {item.get('title') or 'Unknown'}")
        try:
            import_property(supabase, item)
            imported += 1
        except Exception as e:
            logger.error(f"Error importing {item.get('reference') or item.get('title')}: {e}")
            failed += 1
    return {"imported": imported, "failed": failed}


def main():
    parser = argparse.ArgumentParser(description="Import scraped properties into Supabase")
    parser.add_argument("input_file", type=Path, help="JSON export produced by the scraper")
    args = parser.parse_args()

    if not args.input_file.exists():
        logger.error(f"Input file not found: {args.input_file}")
        sys.exit(1)

    try:
        items = json.loads(args.input_file.read_text(encoding="utf-8"))
        logger.info(f"Loaded {len(items)} properties from {args.input_file}")
        summary = import_properties(get_service_supabase(), items)
        logger.info(f"Import completed: {summary['imported']} imported, {summary['failed']} failed")
    except Exception as e:
        logger.error(f"Error during import: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
