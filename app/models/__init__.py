# Vehicle Rental Scheduler — Database Models
# Import all models here for SQLAlchemy discovery

from app.models.vehicle_unit import VehicleUnit    # noqa
from app.models.payment import Payment             # noqa
from app.models.booking import Booking             # noqa
