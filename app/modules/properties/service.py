from supabase import Client
from app.modules.properties.schemas import (
    PropertyResponse, PropertySearchResponse, PropertyImageCreate, PropertyImageResponse,
    PropertyDocumentResponse,
)
from app.modules.properties.storage import PropertyStorage
from app.modules.properties.utils import (
    sanitize_property_update, validate_create_property, validate_publish_property,
    generate_slug, generate_reference, PROPERTY_STATUSES,
)
from app.modules.audit.service import AuditService
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging
import math
import mimetypes
import os
import re
import time
import uuid

logger = logging.getLogger(__name__)

PER_PAGE = 12
MAX_IMAGE_BYTES = 10 * 1024 * 1024
MAX_DOCUMENT_BYTES = 20 * 1024 * 1024

DOCUMENT_BUCKETS = {
    "floor_plan": "property-floor-plans",
    "brochure": "property-documents",
    "document": "property-documents",
}

SORT_ORDERS = {
    "price_asc": ("price", False),
    "price_desc": ("price", True),
    "area_asc": ("gross_area", False),
    "area_desc": ("gross_area", True),
    "oldest": ("created_at", False),
    "recent": ("created_at", True),
}

# Characters with meaning inside a PostgREST or=(...) filter
_FILTER_UNSAFE = re.compile(r"[,()%*\\]")


def _filter_term(value: str) -> str:
    return _FILTER_UNSAFE.sub(" ", value).strip()


def _sorted_images(row: Dict[str, Any]) -> Dict[str, Any]:
    images = row.get("property_images") or []
    row["property_images"] = sorted(images, key=lambda img: (img.get("order") or 0))
    return row


class PropertyService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.audit = AuditService(supabase)

    # -- public ------------------------------------------------------------

    def search_published(
        self,
        q: Optional[str] = None,
        location: Optional[str] = None,
        district: Optional[str] = None,
        municipality: Optional[str] = None,
        business_type: Optional[str] = None,
        nature: Optional[str] = None,
        bedrooms: Optional[int] = None,
        min_price: Optional[float] = None,
        max_price: Optional[float] = None,
        show_price_on_request: bool = True,
        sort: str = "recent",
        page: int = 1,
    ) -> PropertySearchResponse:
        """Published listings with the public search filters"""
        try:
            query = self.supabase.table("properties")\
                .select("*, property_images(*)", count="exact")\
                .eq("status", "published")

            if q and _filter_term(q):
                term = _filter_term(q)
                query = query.or_(
                    f"title.ilike.%{term}%,description.ilike.%{term}%,reference.ilike.%{term}%"
                )
            if location and _filter_term(location):
                term = _filter_term(location)
                query = query.or_(
                    f"district.ilike.%{term}%,municipality.ilike.%{term}%,"
                    f"parish.ilike.%{term}%,address.ilike.%{term}%"
                )
            if district:
                query = query.eq("district", district)
            if municipality:
                query = query.eq("municipality", municipality)
            if business_type:
                query = query.eq("business_type", business_type)
            if nature:
                query = query.eq("nature", nature)
            if bedrooms is not None:
                query = query.eq("bedrooms", bedrooms)
            if min_price is not None:
                query = query.gte("price", min_price)
            if max_price is not None:
                query = query.lte("price", max_price)
            if not show_price_on_request:
                query = query.eq("price_on_request", False)

            column, desc = SORT_ORDERS.get(sort, SORT_ORDERS["recent"])
            if column == "created_at":
                query = query.order(column, desc=desc)
            else:
                query = query.order(column, desc=desc, nullsfirst=False)

            page = max(page, 1)
            offset = (page - 1) * PER_PAGE
            result = query.range(offset, offset + PER_PAGE - 1).execute()

            rows = result.data or []
            total = result.count if result.count is not None else len(rows)
            return PropertySearchResponse(
                items=[PropertyResponse(**_sorted_images(row)) for row in rows],
                total=total,
                page=page,
                per_page=PER_PAGE,
                pages=math.ceil(total / PER_PAGE) if total else 0,
            )
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_published_by_slug(self, slug: str) -> PropertyResponse:
        try:
            result = self.supabase.table("properties")\
                .select("*, property_images(*)")\
                .eq("slug", slug)\
                .eq("status", "published")\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Imóvel não encontrado")
        return PropertyResponse(**_sorted_images(result.data))

    def track_view(self, property_id: str) -> int:
        """Increment views_count; returns the new count."""
        try:
            result = self.supabase.table("properties")\
                .select("views_count")\
                .eq("id", property_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Imóvel não encontrado")
            views = (result.data.get("views_count") or 0) + 1
            self.supabase.table("properties")\
                .update({"views_count": views})\
                .eq("id", property_id)\
                .execute()
            return views
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # -- admin -------------------------------------------------------------

    def list_properties(self, status: Optional[str] = None, limit: int = 100, offset: int = 0) -> List[PropertyResponse]:
        try:
            query = self.supabase.table("properties").select("*, property_images(*)")
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [PropertyResponse(**_sorted_images(row)) for row in (result.data or [])]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_property(self, property_id: str) -> PropertyResponse:
        try:
            result = self.supabase.table("properties")\
                .select("*, property_images(*)")\
                .eq("id", property_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Imóvel não encontrado")
        return PropertyResponse(**_sorted_images(result.data))

    def create_property(
        self,
        payload: Dict[str, Any],
        user_id: str,
        ip_address: Optional[str] = None,
    ) -> PropertyResponse:
        """Create a property; reference and slug are generated when omitted"""
        try:
            data = sanitize_property_update(payload)
            data["reference"] = payload.get("reference") or generate_reference()
            data["slug"] = payload.get("slug") or (generate_slug(data["title"]) if data.get("title") else None)
            data.setdefault("status", "draft")

            error = validate_create_property(data)
            if error:
                raise HTTPException(status_code=400, detail=error)
            if data["status"] not in PROPERTY_STATUSES:
                raise HTTPException(status_code=400, detail="Estado do imóvel inválido")
            if data["status"] == "published":
                error = validate_publish_property(data)
                if error:
                    raise HTTPException(status_code=400, detail=error)

            existing = self.supabase.table("properties")\
                .select("id")\
                .eq("reference", data["reference"])\
                .execute()
            if existing.data:
                raise HTTPException(status_code=400, detail="Referência já existe")

            data["created_by"] = user_id
            result = self.supabase.table("properties").insert(data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Erro ao criar imóvel")

            created = result.data[0]
            self.audit.record(
                "create", "property", created["id"],
                user_id=user_id,
                new_values={"reference": created.get("reference"), "title": created.get("title")},
                details=f"Criou imóvel: {created.get('title')}",
                ip_address=ip_address,
            )
            return PropertyResponse(**created)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def update_property(
        self,
        property_id: str,
        payload: Dict[str, Any],
        user_id: str,
        ip_address: Optional[str] = None,
    ) -> PropertyResponse:
        """Update whitelisted fields; publishing requires a price or price on request"""
        try:
            changes = sanitize_property_update(payload)
            if not changes:
                raise HTTPException(status_code=400, detail="Nenhum campo atualizável")
            if "status" in changes and changes["status"] not in PROPERTY_STATUSES:
                raise HTTPException(status_code=400, detail="Estado do imóvel inválido")

            current = self.get_property(property_id).model_dump(exclude={"property_images"})
            merged = {**current, **changes}
            if merged.get("status") == "published":
                error = validate_publish_property(merged)
                if error:
                    raise HTTPException(status_code=400, detail=error)

            update_data = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
            result = self.supabase.table("properties")\
                .update(update_data)\
                .eq("id", property_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Imóvel não encontrado")

            self.audit.record(
                "update", "property", property_id,
                user_id=user_id,
                old_values={k: current.get(k) for k in changes},
                new_values=changes,
                ip_address=ip_address,
            )
            return PropertyResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_property(self, property_id: str, user_id: str, ip_address: Optional[str] = None) -> bool:
        """Delete a property, its image rows and (best effort) its stored files"""
        try:
            current = self.get_property(property_id)
            storage_paths = [img.storage_path for img in current.property_images if img.storage_path]
            if storage_paths:
                storage = PropertyStorage(self.supabase)
                for path in storage_paths:
                    storage.delete_file(path)

            self.supabase.table("property_images")\
                .delete()\
                .eq("property_id", property_id)\
                .execute()
            self.supabase.table("properties")\
                .delete()\
                .eq("id", property_id)\
                .execute()

            self.audit.record(
                "delete", "property", property_id,
                user_id=user_id,
                old_values={"reference": current.reference, "title": current.title},
                details=f"Eliminou imóvel: {current.title}",
                ip_address=ip_address,
            )
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    # -- images ------------------------------------------------------------

    def _unset_cover(self, property_id: str) -> None:
        self.supabase.table("property_images")\
            .update({"is_cover": False})\
            .eq("property_id", property_id)\
            .execute()

    def add_image(
        self,
        property_id: str,
        image: PropertyImageCreate,
        storage_path: Optional[str] = None,
    ) -> PropertyImageResponse:
        try:
            self.get_property(property_id)
            order = image.order
            if order is None:
                existing = self.supabase.table("property_images")\
                    .select("id")\
                    .eq("property_id", property_id)\
                    .execute()
                order = len(existing.data or [])
            # First image becomes the cover
            is_cover = image.is_cover or order == 0
            if is_cover:
                self._unset_cover(property_id)
            result = self.supabase.table("property_images").insert({
                "property_id": property_id,
                "url": image.url,
                "storage_path": storage_path,
                "alt": image.alt,
                "order": order,
                "is_cover": is_cover,
            }).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add image")
            return PropertyImageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def upload_image(
        self,
        property_id: str,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        alt: Optional[str] = None,
    ) -> PropertyImageResponse:
        content_type = content_type or mimetypes.guess_type(filename)[0] or ""
        if not content_type.startswith("image/"):
            raise HTTPException(status_code=400, detail="Only image files are allowed")
        if not content:
            raise HTTPException(status_code=400, detail="Empty file")
        if len(content) > MAX_IMAGE_BYTES:
            raise HTTPException(status_code=400, detail="Image exceeds 10MB")

        self.get_property(property_id)
        extension = mimetypes.guess_extension(content_type) or ""
        key = f"{property_id}/{uuid.uuid4().hex}{extension}"
        try:
            url = PropertyStorage(self.supabase).upload_file(content, key, content_type=content_type)
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Upload failed: {e}")
        return self.add_image(property_id, PropertyImageCreate(url=url, alt=alt), storage_path=key)

    def upload_document(
        self,
        property_id: str,
        doc_type: str,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> PropertyDocumentResponse:
        """Upload a floor plan, brochure or other document for a property.

        Floor plans go to their own bucket and get a ``property_floor_plans``
        row; a brochure becomes the property's ``brochure_url``.
        """
        bucket = DOCUMENT_BUCKETS.get(doc_type)
        if bucket is None:
            raise HTTPException(status_code=400, detail=f"Invalid document type: {doc_type}")
        if not content:
            raise HTTPException(status_code=400, detail="Empty file")
        if len(content) > MAX_DOCUMENT_BYTES:
            raise HTTPException(status_code=400, detail="File exceeds 20MB")

        self.get_property(property_id)
        content_type = content_type or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        extension = os.path.splitext(filename)[1].lower() or mimetypes.guess_extension(content_type) or ""
        key = f"{property_id}/{doc_type}-{int(time.time() * 1000)}{extension}"
        try:
            url = PropertyStorage(self.supabase, bucket).upload_file(content, key, content_type=content_type, upsert=True)
        except Exception as e:
            raise HTTPException(status_code=500, detail=f"Upload failed: {e}")

        try:
            if doc_type == "brochure":
                self.supabase.table("properties")\
                    .update({"brochure_url": url, "updated_at": datetime.now(timezone.utc).isoformat()})\
                    .eq("id", property_id)\
                    .execute()
            elif doc_type == "floor_plan":
                self.supabase.table("property_floor_plans").insert({
                    "property_id": property_id,
                    "url": url,
                    "order": 0,
                }).execute()
        except Exception as e:
            logger.error(f"Error attaching {doc_type} to property {property_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        self.audit.record(
            "upload_document", "property", property_id,
            user_id=user_id,
            new_values={"type": doc_type, "url": url},
        )
        return PropertyDocumentResponse(url=url, type=doc_type)

    def set_cover(self, property_id: str, image_id: str) -> PropertyImageResponse:
        try:
            self._unset_cover(property_id)
            result = self.supabase.table("property_images")\
                .update({"is_cover": True})\
                .eq("id", image_id)\
                .eq("property_id", property_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail="Image not found")
            return PropertyImageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def delete_image(self, property_id: str, image_id: str) -> bool:
        try:
            result = self.supabase.table("property_images")\
                .select("*")\
                .eq("id", image_id)\
                .eq("property_id", property_id)\
                .maybe_single()\
                .execute()
            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Image not found")
            image = result.data
            self.supabase.table("property_images")\
                .delete()\
                .eq("id", image_id)\
                .execute()
            if image.get("storage_path"):
                PropertyStorage(self.supabase).delete_file(image["storage_path"])
            return True
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
