# Supabase table: profiles (documented in app/modules/auth/models.py)
# Admin user management reads and updates profiles; role changes are
# mirrored into auth.users app_metadata so the JWT claim stays in sync.
