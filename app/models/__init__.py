from app.models.enums import PaymentMethod, PaymentStatus, normalize_status
from app.models.payment import Base, MyWalletCacheEntry, PaymentRecord

__all__ = [
    "Base",
    "PaymentRecord",
    "MyWalletCacheEntry",
    "PaymentMethod",
    "PaymentStatus",
    "normalize_status",
]
