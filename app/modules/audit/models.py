# Supabase table: audit_logs
# Append-only trail of admin and intake actions. Never updated or deleted.

"""
Expected Supabase table structure:

audit_logs:
- id: uuid (primary key)
- user_id: uuid (nullable, references profiles.id)
- action: text (create | update | delete | status_change | ...)
- entity_type: text (property | lead | visit | profile | ...)
- entity_id: uuid (nullable)
- old_values: jsonb (nullable)
- new_values: jsonb (nullable)
- details: text (nullable)
- ip_address: text (nullable)
- user_agent: text (nullable)
- created_at: timestamp (default: now())
"""
