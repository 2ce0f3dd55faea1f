from donation_sync.models.food_item import FoodItem, FoodItemStatus
from donation_sync.models.food_request import FoodRequest, RequestStatus, RequestUrgency
from donation_sync.models.transaction import Transaction, TransactionStatus

__all__ = [
    "FoodItem",
    "FoodItemStatus",
    "FoodRequest",
    "RequestStatus",
    "RequestUrgency",
    "Transaction",
    "TransactionStatus",
]
