from routes.health import health_bp
from routes.auth import auth_bp
from routes.admin import admin_bp
from routes.companies import companies_bp
from routes.event import event_bp
from routes.meetings import meetings_bp
from routes.notifications import notifications_bp
from routes.timeslots import timeslots_bp
from routes.uploads import uploads_bp

ALL_BLUEPRINTS = (
    health_bp,
    auth_bp,
    admin_bp,
    companies_bp,
    event_bp,
    meetings_bp,
    notifications_bp,
    timeslots_bp,
    uploads_bp,
)
