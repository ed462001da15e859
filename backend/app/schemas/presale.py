from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional, Dict, List


class ConnectWalletRequest(BaseModel):
    """Wallet connection reported by the front end."""
    wallet_address: str = Field(..., description="Connected wallet address (EVM or Solana)")
    chain: str = Field(..., description="Network the wallet is connected to")


class PurchaseRequest(BaseModel):
    """A purchase the front end saw confirmed by the user's wallet."""
    wallet_address: str = Field(..., description="Buyer's wallet address")
    amount: Decimal = Field(..., description="Amount paid, in USD")
    chain: str = Field(..., description="Network the payment was made on")
    tx_hash: str = Field(..., description="Payment transaction hash (not verified on-chain)")
    payment_token: Optional[str] = Field(None, description="Payment token symbol, e.g. USDT")


class PurchaseResponse(BaseModel):
    success: bool = True
    tx_hash: str
    tokens_received: int
    new_balance: int
    total_contributed: float
    price_at_purchase: float
    duplicate: bool = Field(False, description="True when this tx hash had already been applied")


class TransactionResponse(BaseModel):
    tx_hash: str
    wallet_address: str
    chain: str
    payment_token: Optional[str] = None
    amount: float
    tokens_received: int
    price_at_purchase: float
    status: str
    created_at: datetime


class UserDataResponse(BaseModel):
    success: bool = True
    wallet_address: str
    chain: Optional[str] = None
    total_contributed: float
    token_balance: int
    paid: bool
    metadata: Dict[str, str] = Field(default_factory=dict)
    first_contribution: Optional[datetime] = None
    last_contribution: Optional[datetime] = None
    transactions: List[TransactionResponse] = Field(default_factory=list)
    is_new_user: bool = False


class PresaleStatusResponse(BaseModel):
    """Current presale configuration and totals."""
    current_stage: int
    current_price: float
    total_raised: float
    tokens_allocated: int
    total_participants: int
    hard_cap: float
    is_active: bool


class LiveStatsResponse(BaseModel):
    participants: int
    raised_amount: float
    tokens_allocated: int
    days_to_launch: int
    is_active: bool


class StageInfo(BaseModel):
    stage: int
    label: str
    price_usd: float


class TokenomicsResponse(BaseModel):
    total_supply: int
    current_stage: int
    stages: List[StageInfo]
    public_sale_price: float
    distribution: Dict[str, int] = Field(..., description="Percent of total supply per allocation")
    is_active: bool


class CountdownResponse(BaseModel):
    target_date: datetime
    title: str
    description: str
    is_active: bool


class PricesResponse(BaseModel):
    prices: Dict[str, float] = Field(..., description="USD price per payment token symbol")
    token_price: float = Field(..., description="Current presale token price in USD")


class EstimateResponse(BaseModel):
    amount: float
    pay_token: str
    usd_amount: float
    token_amount: int


class UpdatePriceRequest(BaseModel):
    stage: int = Field(..., ge=1)
    price: Decimal


class UpdateStageRequest(BaseModel):
    stage: int = Field(..., ge=1)


class ToggleStatusRequest(BaseModel):
    is_active: bool


class ErrorResponse(BaseModel):
    """Standard error response."""
    success: bool = False
    error: str
    detail: Optional[str] = None
