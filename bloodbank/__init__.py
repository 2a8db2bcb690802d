"""Blood bank record keeping: donors, recipients, hospitals, inventory and alerts."""

from .app import create_app
from .summary import summarize_inventory

__version__ = "1.0.0"
