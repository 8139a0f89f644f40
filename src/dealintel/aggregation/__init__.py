"""Portfolio and inbound-funnel roll-ups for the dashboards."""

from src.dealintel.aggregation.leads import compute_lead_metrics
from src.dealintel.aggregation.portfolio import PortfolioAggregator

__all__ = ["PortfolioAggregator", "compute_lead_metrics"]
