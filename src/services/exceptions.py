class RentalError(Exception):
    """Base class for errors reported back to the caller"""
    status_code = 400

    def to_detail(self):
        return str(self)


class NotFoundError(RentalError):
    """Raised when a referenced record does not exist"""
    status_code = 404


class ConflictError(RentalError):
    """Raised when a request contradicts the current state of the store"""
    status_code = 409


class InsufficientStockError(ConflictError):
    """Raised when a requested quantity exceeds what is free for the dates"""

    def __init__(self, item_name: str, requested: int, available: int):
        self.item_name = item_name
        self.requested = requested
        self.available = available
        self.shortfall = requested - available
        super().__init__(
            f"Insufficient stock for {item_name}. "
            f"Available: {available}, Requested: {requested}"
        )

    def to_detail(self):
        return {
            "message": str(self),
            "item_name": self.item_name,
            "requested": self.requested,
            "available": self.available,
            "shortfall": self.shortfall,
        }


class DuplicateNameError(ConflictError):
    pass


class ReferentialIntegrityError(ConflictError):
    pass


class StockInUseError(ConflictError):
    pass


class OrderAlreadyCompletedError(ConflictError):
    pass
