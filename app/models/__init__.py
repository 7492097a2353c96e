from .user_model import Users
from .credit_model import UserCredits
from .order_model import Order, OrderStatus
from .daily_limit_model import DailyLimit
from .package_model import PricingPackage
from .transaction_model import Transaction, TransactionStatus
from .push_subscription_model import PushSubscription
from .verification_model import VerificationCode, PasswordResetToken

__all__ = [
    "Users",
    "UserCredits",
    "Order",
    "OrderStatus",
    "DailyLimit",
    "PricingPackage",
    "Transaction",
    "TransactionStatus",
    "PushSubscription",
    "VerificationCode",
    "PasswordResetToken",
]
