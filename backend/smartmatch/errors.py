"""SmartMatch error types."""


class SmartMatchError(Exception):
    """Base class for SmartMatch failures."""


class VendorNotFoundError(SmartMatchError):
    """Raised when a profile build is requested for an unknown vendor."""

    def __init__(self, business_id: str):
        self.business_id = business_id
        super().__init__(f"Business {business_id} not found")
