from decimal import Decimal
from typing import Optional
from pydantic import BaseModel
from pydantic import ConfigDict

class ProductoIn(BaseModel):
    id: Optional[int] = None  # ignored; the database assigns ids
    name: str
    price: Decimal = Decimal(0)
    stock: int = 0

class ProductoOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    # pydantic renders Decimal as an exact string, e.g. "1.50"
    price: Decimal
    stock: int
