from ukhiker.models.user import User
from ukhiker.models.trek import Trek
from ukhiker.models.payment import Payment

__all__ = ["User", "Trek", "Payment"]
