from .user import User
from .inquiry import Inquiry
