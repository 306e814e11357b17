"""Insurance operations data access, auth state and diagnostics over Supabase."""

__version__ = "0.1.0"
