from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from allocation_engine import Asset


class StoreModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SavedPortfolio(StoreModel):
    """Named set of engine inputs kept in local storage"""
    id: str
    name: str
    assets: List[Asset]
    new_money: float
    enable_selling: bool = False
    created_at: str
    updated_at: str


class PortfolioStorage(StoreModel):
    """Root document of the storage file"""
    portfolios: List[SavedPortfolio] = Field(default_factory=list)
    active_portfolio_id: Optional[str] = None


class SaveResult(BaseModel):
    success: bool
    id: Optional[str] = None
    error: Optional[str] = None


class ImportResult(BaseModel):
    success: bool
    portfolio: Optional[SavedPortfolio] = None
    error: Optional[str] = None


class SharedPortfolio(BaseModel):
    """Engine inputs recovered from a share link"""
    assets: List[Asset]
    new_money: float
    enable_selling: bool = False
