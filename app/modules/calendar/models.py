# Supabase table: google_tokens
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

google_tokens:
- id: uuid (primary key)
- user_id: uuid (unique, references profiles.id)
- access_token: text
- refresh_token: text (nullable)
- scope: text (nullable)
- token_type: text (nullable)
- expires_at: timestamp
- google_email: text (nullable)
- google_name: text (nullable)
- google_picture: text (nullable)
- created_at: timestamp (default: now())

visits.google_event_id holds the id of the consultant's calendar event.
"""
