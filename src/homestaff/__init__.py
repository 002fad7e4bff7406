"""
HomeStaff - household staff management backend.

Packages:
- homestaff.db: Supabase persistence (households, defaults, employees, invitations, progress)
- homestaff.web: FastAPI application
- onboarding: setup wizard state machine and default-policy presets
"""

__version__ = "0.3.0"
