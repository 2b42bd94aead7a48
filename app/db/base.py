from app.db.mixins import Base

# Import all models so Alembic can detect them
from app.db.models.user import User
from app.db.models.inquiry import Inquiry
