from dataclasses import dataclass

LISTING_FEE = 0.20


@dataclass(frozen=True)
class ProfitInputs:
    sale_price: float = 25.0
    shipping_charge: float = 5.0
    item_cost: float = 5.0
    shipping_cost: float = 5.0
    transaction_fee_percent: float = 6.5
    processing_fee_percent: float = 3.0
    processing_fee_fixed: float = 0.25
    offsite_ad_fee_percent: float = 12.0
    use_offsite_ads: bool = False


@dataclass(frozen=True)
class ProfitBreakdown:
    total_revenue: float
    total_fees: float
    total_cost: float
    profit: float
    margin: float


def calculate_profit(inputs: ProfitInputs) -> ProfitBreakdown:
    total_revenue = inputs.sale_price + inputs.shipping_charge

    transaction_fee = total_revenue * (inputs.transaction_fee_percent / 100)
    processing_fee = total_revenue * (inputs.processing_fee_percent / 100) + inputs.processing_fee_fixed
    offsite_ad_fee = total_revenue * (inputs.offsite_ad_fee_percent / 100) if inputs.use_offsite_ads else 0.0

    total_fees = LISTING_FEE + transaction_fee + processing_fee + offsite_ad_fee
    total_cost = inputs.item_cost + inputs.shipping_cost

    profit = total_revenue - total_cost - total_fees
    margin = (profit / total_revenue) * 100 if total_revenue > 0 else 0.0

    return ProfitBreakdown(
        total_revenue=total_revenue,
        total_fees=total_fees,
        total_cost=total_cost,
        profit=profit,
        margin=margin,
    )
