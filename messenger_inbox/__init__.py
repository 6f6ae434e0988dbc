"""Messenger inbox relay: Messenger webhooks into Supabase, plus the inbox REST API"""

__version__ = "1.0.0"
