"""
Camera blueprint initialization.
Assembles the camera booking JSON API from its route modules:
- routes/bookings.py - Requests, review and lifecycle actions
- routes/custody.py - Pickup/return confirmations and agent custody view
- routes/units.py - Unit status and maintenance
- routes/reports.py - Occupancy, overdue and late-cancellation reports
"""

from flask import Blueprint

# Create main camera blueprint
camera_bp = Blueprint('camera', __name__)

# Import and register routes from submodules
from blueprints.camera.routes import bookings
from blueprints.camera.routes import custody
from blueprints.camera.routes import units
from blueprints.camera.routes import reports

# Register all route functions on the blueprint
bookings.register_routes(camera_bp)
custody.register_routes(camera_bp)
units.register_routes(camera_bp)
reports.register_routes(camera_bp)
