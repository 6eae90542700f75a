# Supabase tables: properties, property_images
# Storage bucket: property-images
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

properties:
- id: uuid (primary key)
- reference: text (unique, not null) e.g. COV-AB12CD
- slug: text (unique, not null)
- title: text (not null)
- description: text (nullable)
- business_type: text (sale | rent | transfer)
- nature: text (apartment | house | land | commercial | warehouse | office | garage | shop)
- status: text (draft | published | archived, default: draft)
- price: numeric (nullable)
- price_on_request: boolean (default: false)
- district, municipality, parish, address, postal_code: text (nullable)
- latitude, longitude: numeric (nullable)
- gross_area, useful_area, land_area: numeric (nullable)
- bedrooms, bathrooms, floors, construction_year: integer (nullable)
- typology: text (nullable) e.g. T3
- construction_status: text (new | used | under_construction | renovated | to_renovate)
- energy_certificate: text (A+ | A | B | B- | C | D | E | F | Isento)
- divisions: jsonb, equipment/extras/surrounding_area: text[] (nullable)
- video_url, virtual_tour_url, brochure_url: text (nullable)
- featured: boolean (default: false)
- views_count: integer (default: 0)
- created_by: uuid (nullable, references profiles.id)
- created_at, updated_at: timestamp

property_images:
- id: uuid (primary key)
- property_id: uuid (references properties.id)
- url: text (not null)
- storage_path: text (nullable) object key inside the bucket
- alt: text (nullable)
- order: integer (default: 0)
- is_cover: boolean (default: false)
- created_at: timestamp
"""
