"""Saved portfolio persistence backed by a local JSON file"""

import json
import logging
import os
import re
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from allocation_engine import Asset
from allocator_config import StorageConfig, get_config
from .models import ImportResult, PortfolioStorage, SavedPortfolio, SaveResult


def generate_id() -> str:
    """Millisecond timestamp plus a random suffix"""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:9]}"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class PortfolioStorageService:
    """
    Keeps a small number of named portfolios in a JSON file.

    Read failures are logged and treated as an empty store so a corrupt file
    never blocks the calculator.
    """

    def __init__(self, config: Optional[StorageConfig] = None, logger: Optional[logging.Logger] = None):
        self.config = config or get_config().storage
        self.data_path = Path(self.config.data_path)
        self.max_portfolios = self.config.max_portfolios
        self.logger = logger or logging.getLogger(__name__)

    def get_storage_data(self) -> PortfolioStorage:
        if not self.data_path.exists():
            return PortfolioStorage()

        try:
            with open(self.data_path, 'r') as f:
                return PortfolioStorage.model_validate(json.load(f))
        except (OSError, ValueError) as e:
            self.logger.error(f"Error reading portfolio storage {self.data_path}: {e}")
            return PortfolioStorage()

    def save_storage_data(self, data: PortfolioStorage) -> bool:
        try:
            self.data_path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self.data_path.with_suffix(self.data_path.suffix + '.tmp')
            with open(temp_path, 'w') as f:
                json.dump(data.model_dump(by_alias=True), f, indent=2)
            os.replace(temp_path, self.data_path)
            return True
        except OSError as e:
            self.logger.error(f"Error saving portfolio storage {self.data_path}: {e}")
            return False

    def save_portfolio(self, name: str, assets: Sequence[Asset], new_money: float,
                       enable_selling: bool = False, portfolio_id: Optional[str] = None) -> SaveResult:
        """
        Create a portfolio, or update an existing one when portfolio_id is given.

        The first portfolio created becomes the active one.
        """
        storage = self.get_storage_data()

        if not portfolio_id and len(storage.portfolios) >= self.max_portfolios:
            return SaveResult(success=False, error=f"Maximum of {self.max_portfolios} portfolios allowed")

        now = _now()

        if portfolio_id:
            existing = self._find(storage, portfolio_id)
            if existing is None:
                return SaveResult(success=False, error="Portfolio not found")

            existing.name = name
            existing.assets = list(assets)
            existing.new_money = new_money
            existing.enable_selling = enable_selling
            existing.updated_at = now
            if not self.save_storage_data(storage):
                return SaveResult(success=False, error="Failed to write portfolio storage")

            self.logger.info(f"Updated portfolio '{name}' ({portfolio_id})")
            return SaveResult(success=True, id=portfolio_id)

        portfolio = SavedPortfolio(
            id=generate_id(),
            name=name,
            assets=list(assets),
            new_money=new_money,
            enable_selling=enable_selling,
            created_at=now,
            updated_at=now
        )
        self._add(storage, portfolio)

        if not self.save_storage_data(storage):
            return SaveResult(success=False, error="Failed to write portfolio storage")

        self.logger.info(f"Saved portfolio '{name}' ({portfolio.id})")
        return SaveResult(success=True, id=portfolio.id)

    def list_portfolios(self) -> List[SavedPortfolio]:
        return self.get_storage_data().portfolios

    def load_portfolio(self, portfolio_id: str) -> Optional[SavedPortfolio]:
        return self._find(self.get_storage_data(), portfolio_id)

    def delete_portfolio(self, portfolio_id: str) -> bool:
        storage = self.get_storage_data()
        portfolio = self._find(storage, portfolio_id)
        if portfolio is None:
            return False

        storage.portfolios.remove(portfolio)

        if storage.active_portfolio_id == portfolio_id:
            storage.active_portfolio_id = storage.portfolios[0].id if storage.portfolios else None

        self.save_storage_data(storage)
        self.logger.info(f"Deleted portfolio {portfolio_id}")
        return True

    def set_active_portfolio(self, portfolio_id: str) -> bool:
        storage = self.get_storage_data()
        if self._find(storage, portfolio_id) is None:
            return False

        storage.active_portfolio_id = portfolio_id
        return self.save_storage_data(storage)

    def get_active_portfolio(self) -> Optional[SavedPortfolio]:
        storage = self.get_storage_data()
        if storage.active_portfolio_id is None:
            return None
        return self._find(storage, storage.active_portfolio_id)

    def export_portfolio(self, portfolio: SavedPortfolio, directory: str | Path) -> Optional[Path]:
        """
        Write a portfolio to portfolio-<name>-<date>.json in directory.

        The name is reduced to [a-z0-9-] so the file always lands directly in
        directory. Returns None when the file cannot be written.
        """
        slug = re.sub(r'[^a-z0-9]+', '-', portfolio.name.lower()).strip('-') or 'untitled'
        file_name = f"portfolio-{slug}-{datetime.now().strftime('%Y-%m-%d')}.json"
        export_path = Path(directory) / file_name

        try:
            with open(export_path, 'w') as f:
                json.dump(portfolio.model_dump(by_alias=True), f, indent=2)
        except OSError as e:
            self.logger.error(f"Error exporting portfolio '{portfolio.name}' to {export_path}: {e}")
            return None

        self.logger.info(f"Exported portfolio '{portfolio.name}' to {export_path}")
        return export_path

    def import_portfolio(self, path: str | Path) -> ImportResult:
        """Add a previously exported portfolio under a new id"""
        try:
            with open(path, 'r') as f:
                content = f.read()
        except OSError as e:
            self.logger.error(f"Failed to read portfolio file {path}: {e}")
            return ImportResult(success=False, error="Failed to read file")

        try:
            data = json.loads(content)
        except ValueError:
            return ImportResult(success=False, error="Failed to parse portfolio file")

        if not isinstance(data, dict) or not data.get('name') or not isinstance(data.get('assets'), list):
            return ImportResult(success=False, error="Invalid portfolio format")

        storage = self.get_storage_data()
        if len(storage.portfolios) >= self.max_portfolios:
            return ImportResult(success=False, error=f"Maximum of {self.max_portfolios} portfolios allowed")

        now = _now()
        try:
            portfolio = SavedPortfolio.model_validate({
                'newMoney': 0,
                **data,
                'id': generate_id(),
                'createdAt': now,
                'updatedAt': now,
            })
        except ValidationError as e:
            self.logger.warning(f"Rejected portfolio file {path}: {e}")
            return ImportResult(success=False, error="Invalid portfolio format")

        self._add(storage, portfolio)
        if not self.save_storage_data(storage):
            return ImportResult(success=False, error="Failed to write portfolio storage")

        self.logger.info(f"Imported portfolio '{portfolio.name}' ({portfolio.id})")
        return ImportResult(success=True, portfolio=portfolio)

    @staticmethod
    def _find(storage: PortfolioStorage, portfolio_id: str) -> Optional[SavedPortfolio]:
        return next((p for p in storage.portfolios if p.id == portfolio_id), None)

    @staticmethod
    def _add(storage: PortfolioStorage, portfolio: SavedPortfolio):
        storage.portfolios.append(portfolio)
        if not storage.active_portfolio_id:
            storage.active_portfolio_id = portfolio.id
