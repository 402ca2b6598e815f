from .auth import User, SessionToken
from .customers import Customer
from .sales import Sale
from .expenses import Expense
from .reservations import Reservation
from .photos import PhotoCard, PhotoTag
from .push import PushSubscription
from .settings import (
    SaleCategory,
    PaymentMethodOption,
    ExpenseCategory,
    ExpensePaymentMethod,
    CardCompanySetting,
    ProductCategory,
)

__all__ = [
    'User', 'SessionToken',
    'Customer',
    'Sale',
    'Expense',
    'Reservation',
    'PhotoCard', 'PhotoTag',
    'PushSubscription',
    'SaleCategory', 'PaymentMethodOption', 'ExpenseCategory', 'ExpensePaymentMethod',
    'CardCompanySetting', 'ProductCategory',
]
