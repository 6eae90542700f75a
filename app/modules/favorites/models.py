# Supabase table: favorites
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

favorites:
- id: uuid (primary key)
- user_id: uuid (references profiles.id)
- property_id: uuid (references properties.id)
- created_at: timestamp (default: now())
- unique (user_id, property_id)
"""
