"""
bookbazaar_shared — shared settings, Supabase clients, and models for the bookbazaar service.

Usage:
    from bookbazaar_shared.config import settings
    from bookbazaar_shared.db import get_supabase_client, get_user_client
    from bookbazaar_shared.models import Listing, Order, OrderStatus, Notification
    from bookbazaar_shared.constants import CATEGORIES, CONDITIONS
"""

__version__ = "0.1.0"
