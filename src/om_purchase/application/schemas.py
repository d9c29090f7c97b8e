"""Request/response schemas for the purchase API."""

from pydantic import BaseModel, Field

from src.om_common.cents import cents_to_display
from src.om_purchase.domain.models import PurchaseReceipt


class PurchaseRequest(BaseModel):
    target_id: str = Field(min_length=1, max_length=64)
    expected_price: int = Field(ge=0, description="Target price the buyer saw, in cents")
    expected_owner_id: str | None = Field(
        default=None, description="Target owner the buyer saw; null when unowned"
    )
    expected_version: int = Field(ge=1, description="Target version the buyer saw")
    idempotency_key: str = Field(
        min_length=1, max_length=128, description="Client-generated key; reuse it on retry"
    )


class PartyView(BaseModel):
    id: str
    username: str


class TargetView(PartyView):
    new_price_cents: int
    new_price_display: str


class PurchaseTransactionView(BaseModel):
    id: str
    price_cents: int
    price_display: str
    target_bonus_cents: int
    buyer: PartyView
    target: TargetView
    created_at: str  # ISO8601 string


class PurchaseResponse(BaseModel):
    transaction: PurchaseTransactionView
    buyer_balance_cents: int
    buyer_balance_display: str

    @classmethod
    def from_receipt(cls, receipt: PurchaseReceipt) -> "PurchaseResponse":
        return cls(
            transaction=PurchaseTransactionView(
                id=receipt.transaction_id,
                price_cents=receipt.price,
                price_display=cents_to_display(receipt.price),
                target_bonus_cents=receipt.target_bonus,
                buyer=PartyView(id=receipt.buyer_id, username=receipt.buyer_username),
                target=TargetView(
                    id=receipt.target_id,
                    username=receipt.target_username,
                    new_price_cents=receipt.new_price,
                    new_price_display=cents_to_display(receipt.new_price),
                ),
                created_at=receipt.created_at.isoformat(),
            ),
            buyer_balance_cents=receipt.buyer_balance,
            buyer_balance_display=cents_to_display(receipt.buyer_balance),
        )
