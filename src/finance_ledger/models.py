from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

TransactionType = Literal["income", "expense"]

DEFAULT_CATEGORY = "General"


class Transaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int | str
    type: TransactionType
    amount: Decimal = Field(ge=0, lt=Decimal("1e15"))  # magnitude; the sign comes from type
    description: str
    date: str  # YYYY-MM-DD
    category: str = DEFAULT_CATEGORY


class MonthlyAggregate(BaseModel):
    income_total: Decimal = Decimal(0)
    expense_total: Decimal = Decimal(0)
    category_totals: dict[str, Decimal] = Field(default_factory=dict)


class MonthSummary(BaseModel):
    income: Decimal
    expense: Decimal
    balance: Decimal


class Profile(BaseModel):
    name: str = ""
    email: str = ""
    photo: str = ""  # opaque, usually a data URL
