"""
Property payload helpers: field whitelisting, create/publish validation,
slug and reference generation.
"""

import random
import re
import string
import time
import unicodedata
from typing import Any, Dict, Mapping, Optional

BUSINESS_TYPES = ("sale", "rent", "transfer")
NATURES = ("apartment", "house", "land", "commercial", "warehouse", "office", "garage", "shop")
PROPERTY_STATUSES = ("draft", "published", "archived")

REQUIRED_CREATE_FIELDS = ("reference", "title", "slug", "business_type", "nature")

PROPERTY_UPDATABLE_FIELDS = (
    "title",
    "description",
    "business_type",
    "nature",
    "status",
    "price",
    "price_on_request",
    "district",
    "municipality",
    "parish",
    "address",
    "postal_code",
    "latitude",
    "longitude",
    "gross_area",
    "useful_area",
    "land_area",
    "bedrooms",
    "bathrooms",
    "floors",
    "typology",
    "construction_status",
    "construction_year",
    "energy_certificate",
    "divisions",
    "equipment",
    "extras",
    "surrounding_area",
    "video_url",
    "virtual_tour_url",
    "brochure_url",
    "featured",
)


def sanitize_property_update(payload: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only whitelisted fields."""
    return {field: payload[field] for field in PROPERTY_UPDATABLE_FIELDS if field in payload}


def validate_create_property(payload: Mapping[str, Any]) -> Optional[str]:
    """Error message, or None when the payload can be inserted."""
    for field in REQUIRED_CREATE_FIELDS:
        if not payload.get(field):
            return f"Campo obrigatório em falta: {field}"
    if payload.get("business_type") not in BUSINESS_TYPES:
        return "Tipo de negócio inválido"
    if payload.get("nature") not in NATURES:
        return "Natureza do imóvel inválida"
    return None


def validate_publish_property(prop: Mapping[str, Any]) -> Optional[str]:
    if not prop.get("price") and not prop.get("price_on_request"):
        return 'O imóvel deve ter um preço ou estar marcado como "Sob Consulta"'
    return None


def _base36(number: int) -> str:
    digits = string.digits + string.ascii_lowercase
    if number == 0:
        return "0"
    out = []
    while number:
        number, rem = divmod(number, 36)
        out.append(digits[rem])
    return "".join(reversed(out))


def slugify(text: str, max_length: int = 50) -> str:
    normalized = unicodedata.normalize("NFD", text.lower())
    without_accents = "".join(ch for ch in normalized if not unicodedata.combining(ch))
    slug = re.sub(r"[^a-z0-9]+", "-", without_accents).strip("-")
    return slug[:max_length]


def generate_slug(title: str) -> str:
    """URL slug with a base-36 millisecond suffix, e.g. ``moradia-t3-leiria-lq2x8k1a``."""
    return f"{slugify(title)}-{_base36(int(time.time() * 1000))}"


def generate_reference(prefix: str = "COV") -> str:
    chars = string.ascii_uppercase + string.digits
    code = "".join(random.choice(chars) for _ in range(6))
    return f"{prefix}-{code}"
