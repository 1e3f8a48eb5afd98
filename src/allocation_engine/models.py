from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialized with the camelCase keys used by callers"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Asset(CamelModel):
    """One holding in a portfolio snapshot"""
    symbol: str
    current_value: float
    target_percentage: float  # fraction in [0, 1]
    no_sell: bool = False
    current_price: Optional[float] = None
    shares: Optional[float] = None
    price_source: Optional[Literal['api', 'manual']] = None
    last_updated: Optional[str] = None


class AllocationRequest(CamelModel):
    """Engine input: assets, cash to deploy and mode flag"""
    assets: List[Asset]
    new_money: float
    enable_selling: bool = False


class AllocationResult(CamelModel):
    """Recommendation for a single asset"""
    symbol: str
    amount_to_add: float
    new_value: float
    new_percentage: float
    target_percentage: float  # 0-100 scale
    difference: float


class ValidationResult(BaseModel):
    """Outcome of portfolio validation"""
    is_valid: bool
    errors: List[str] = Field(default_factory=list)
