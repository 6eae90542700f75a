# Supabase Auth
# This module uses Supabase's built-in authentication system.
# Supabase Auth handles registration, password login, JWT issuing and
# validation (auth.users table). Application data lives in `profiles`.

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null)
- first_name: text (nullable)
- last_name: text (nullable)
- phone: text (nullable)
- avatar_url: text (nullable)
- role: text (user | admin | super_admin, default: user)
- is_active: boolean (default: true)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

The JWT may carry `app_metadata.role`; when it does it wins over the
profiles column (see app.core.roles.resolve_role).
"""
