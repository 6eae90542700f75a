# Supabase table: notifications
# In-app notifications shown in the admin topbar.

"""
Expected Supabase table structure:

notifications:
- id: uuid (primary key)
- user_id: uuid (not null, references profiles.id)
- type: text (lead | visit | system)
- title: text (not null)
- message: text (not null)
- link: text (nullable)
- read: boolean (default: false)
- metadata: jsonb (nullable)
- created_at: timestamp (default: now())
"""
