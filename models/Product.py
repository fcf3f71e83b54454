from pydantic import BaseModel, ConfigDict
from typing import Any, Optional

class ProductPayload(BaseModel):
    """
    Body of POST /products and PUT /products/{id}.

    Values are handed to the store as sent; the store decides what it accepts.
    """
    model_config = ConfigDict(extra="ignore")

    name: Any = None
    price: Any = None
    description: Any = None

    @classmethod
    def from_body(cls, body: Any) -> "ProductPayload":
        # no body, or one that is not an object, carries no fields
        if not isinstance(body, dict):
            return cls()
        return cls.model_validate(body)

class Product(BaseModel):
    id: int
    name: Optional[str] = None
    price: Optional[float] = None
    description: Optional[str] = None

class ErrorMessage(BaseModel):
    error: str
