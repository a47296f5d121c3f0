"""
Staff API routes package.
Split into smaller modules by entity for maintainability:
- bookings.py: booking lists, creation, lifecycle actions, amendment
- availability.py: slot grid, free tables, game copies
- sessions.py: live table sessions and walk-ins
- settings.py: booking policy and operating hours
- waitlist.py: waitlist entries
- exports.py: bookings Excel export
"""

from flask import Blueprint

# Create the API blueprint
api_bp = Blueprint('api', __name__)

# Import and register routes from submodules
from blueprints.api import bookings
from blueprints.api import availability
from blueprints.api import sessions
from blueprints.api import settings
from blueprints.api import waitlist
from blueprints.api import exports

# Register all route functions on the blueprint
bookings.register_routes(api_bp)
availability.register_routes(api_bp)
sessions.register_routes(api_bp)
settings.register_routes(api_bp)
waitlist.register_routes(api_bp)
exports.register_routes(api_bp)
