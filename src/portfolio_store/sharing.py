"""Compact, URL-safe encoding of engine inputs for share links"""

import base64
import json
import logging
from typing import List, Optional, Sequence
from urllib.parse import parse_qs, urlencode, urlsplit

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from allocation_engine import Asset, MAX_ASSETS
from .models import SharedPortfolio

logger = logging.getLogger(__name__)

MAX_SHARED_VALUE = 1_000_000_000
SHARE_QUERY_PARAM = 'p'


class EncodedAsset(BaseModel):
    """Wire form of an asset: s=symbol, v=value, t=target, p=price, sh=shares, n=no-sell"""
    model_config = ConfigDict(strict=True)

    s: str = Field(pattern=r'^[A-Z0-9\-\.:]{1,30}$')
    v: float = Field(ge=0, le=MAX_SHARED_VALUE)
    t: float = Field(ge=0, le=1)
    p: Optional[float] = Field(default=None, ge=0)
    sh: Optional[float] = Field(default=None, ge=0)
    n: bool = False


def encode_portfolio(assets: Sequence[Asset], new_money: float, enable_selling: bool = False) -> str:
    """Encode assets and new money as a URL-safe base64 token"""
    data = {
        'assets': [_encode_asset(asset) for asset in assets],
        'm': new_money,
    }
    if enable_selling:
        data['e'] = True

    payload = json.dumps(data, separators=(',', ':')).encode('utf-8')
    return base64.urlsafe_b64encode(payload).decode('ascii').rstrip('=')


def encode_portfolio_to_url(assets: Sequence[Asset], new_money: float, enable_selling: bool = False,
                            base_url: str = 'https://allogator.vercel.app/') -> str:
    """Share link for base_url carrying the encoded portfolio"""
    base = base_url.split('?', 1)[0]
    return f"{base}?{urlencode({SHARE_QUERY_PARAM: encode_portfolio(assets, new_money, enable_selling)})}"


def decode_portfolio_from_url(url_or_token: str) -> Optional[SharedPortfolio]:
    """
    Recover a portfolio from a share link or a bare token.

    Invalid assets are dropped, at most MAX_ASSETS are kept and values are
    clamped to their allowed ranges. Returns None when nothing usable is found.
    """
    token = _extract_token(url_or_token)
    if not token:
        return None

    try:
        decoded = json.loads(_b64decode(token))

        if not isinstance(decoded, dict) or not isinstance(decoded.get('assets'), list):
            raise ValueError("Invalid portfolio structure")

        new_money = decoded.get('m')
        if isinstance(new_money, bool) or not isinstance(new_money, (int, float)) \
                or new_money < 0 or new_money > MAX_SHARED_VALUE:
            raise ValueError("Invalid new money amount")

        assets = [_decode_asset(item) for item in _valid_assets(decoded['assets'])[:MAX_ASSETS]]
        if not assets:
            raise ValueError("No valid assets found")

        return SharedPortfolio(
            assets=assets,
            new_money=max(0, min(MAX_SHARED_VALUE, new_money)),
            enable_selling=decoded.get('e') is True
        )
    except ValueError as e:
        logger.debug(f"Ignoring unusable share link: {e}")
        return None


def _encode_asset(asset: Asset) -> dict:
    encoded = {'s': asset.symbol, 'v': asset.current_value, 't': asset.target_percentage}
    if asset.current_price is not None:
        encoded['p'] = asset.current_price
    if asset.shares is not None:
        encoded['sh'] = asset.shares
    if asset.no_sell:
        encoded['n'] = True
    return encoded


def _valid_assets(items: list) -> List[EncodedAsset]:
    valid = []
    for item in items:
        try:
            valid.append(EncodedAsset.model_validate(item))
        except ValidationError:
            continue
    return valid


def _decode_asset(encoded: EncodedAsset) -> Asset:
    return Asset(
        symbol=encoded.s.strip().upper(),
        current_value=max(0, min(MAX_SHARED_VALUE, encoded.v)),
        target_percentage=max(0, min(1, encoded.t)),
        current_price=max(0, encoded.p) if encoded.p else None,
        shares=max(0, encoded.sh) if encoded.sh else None,
        no_sell=encoded.n
    )


def _extract_token(url_or_token: str) -> Optional[str]:
    value = url_or_token.strip()
    if '?' not in value and '://' not in value:
        return value or None

    values = parse_qs(urlsplit(value).query).get(SHARE_QUERY_PARAM)
    return values[0] if values else None


def _b64decode(token: str) -> str:
    # Accept both standard and URL-safe alphabets; '+' may arrive as a space
    normalized = token.replace(' ', '+').replace('+', '-').replace('/', '_')
    padded = normalized + '=' * (-len(normalized) % 4)
    return base64.urlsafe_b64decode(padded).decode('utf-8')
