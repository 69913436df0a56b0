from pydantic import BaseModel, Field
from typing import List


class LineItem(BaseModel):
    product_name: str
    quantity: int = Field(gt=0)


class DraftOrder(BaseModel):
    """Order-in-progress stored as JSON on the customer until an address arrives."""
    items: List[LineItem]
    unit_price: int
    total_price: int
