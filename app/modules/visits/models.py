# Supabase table: visits
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

visits:
- id: uuid (primary key)
- property_id: uuid (references properties.id)
- user_id: uuid (nullable, references profiles.id) client who booked online
- lead_id: uuid (nullable, references leads.id)
- scheduled_at: timestamp
- status: text (pending | confirmed | cancelled | completed | rescheduled)
- notes: text (nullable)
- internal_notes: text (nullable)
- assigned_to: uuid (nullable, references profiles.id) consultant
- google_event_id: text (nullable)
- confirmed_at, completed_at, cancelled_at: timestamp (nullable)
- cancellation_reason: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
