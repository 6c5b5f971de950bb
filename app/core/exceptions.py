# exceptions.py

class BusinessLogicException(Exception):
    """Base class for business-related exceptions."""
    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class AuthorizationException(BusinessLogicException):
    """Origin / widget token / domain lock rejections. Always terminal."""
    def __init__(self, detail: str):
        super().__init__(status_code=403, detail=detail)

class StoreNotFoundException(BusinessLogicException):
    def __init__(self, store: str):
        super().__init__(
            status_code=404,
            detail=f"Store {store} not found"
        )

class TicketNotFoundException(BusinessLogicException):
    def __init__(self, detail: str = "Ticket not found"):
        super().__init__(status_code=404, detail=detail)

class RegistrationLinkException(BusinessLogicException):
    def __init__(self):
        super().__init__(
            status_code=400,
            detail="Invalid or expired registration link"
        )

class EmailAlreadyRegisteredException(BusinessLogicException):
    def __init__(self):
        super().__init__(status_code=400, detail="Email already registered")

class InvalidShopDomainException(BusinessLogicException):
    def __init__(self, shop: str):
        super().__init__(
            status_code=400,
            detail=f"Invalid shop domain format: {shop}, expected your-store.myshopify.com"
        )

class NothingToUpdateException(BusinessLogicException):
    def __init__(self):
        super().__init__(status_code=400, detail="No updatable fields provided")


class DatabaseException(Exception):
    """Base class for database-related exceptions."""
    def __init__(self,status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class DatabaseConstraintException(DatabaseException):
    def __init__(self, detail: str):
        super().__init__(status_code=409, detail=detail)


class ExternalServiceException(Exception):
    """Base class for external service-related exceptions (n8n, Shopify)."""
    def __init__(self, detail: str, status_code: int = 500):
        self.status_code = status_code
        self.detail = detail
        super().__init__(self.detail)

class ExternalServiceClientError(ExternalServiceException):
    def __init__(self, message: str):
        super().__init__(status_code=400, detail=message)

class ExternalServiceServerError(ExternalServiceException):
    """Exception raised when there is an issue connecting to the external service."""
    def __init__(self, message: str, status_code: int = 500):
        super().__init__(status_code=status_code, detail=message)
