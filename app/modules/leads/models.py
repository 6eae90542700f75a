# Supabase table: leads
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

leads:
- id: uuid (primary key)
- name: text (nullable)
- email: text (not null)
- phone: text (nullable) normalized to +351XXXXXXXXX for wizard leads
- message: text (nullable)
- property_id: uuid (nullable, references properties.id)
- source: text (contact_page | property_page | homepage_sell_wizard | complete_evaluation)
- status: text (new | contacted | visit_scheduled | negotiation | closed | lost)
- tags: text[] (nullable)
- custom_fields: jsonb (nullable) wizard answers
- notes: text (nullable)
- assigned_to: uuid (nullable, references profiles.id)
- ip_address: text (nullable)
- user_agent: text (nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)
"""
