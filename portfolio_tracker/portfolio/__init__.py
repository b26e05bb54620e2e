"""Portfolio tracking domain package."""

from portfolio_tracker.portfolio.models import AddResult, Position
from portfolio_tracker.portfolio.portfolio_service import PortfolioService
from portfolio_tracker.portfolio.store import PortfolioStore

__all__ = ["AddResult", "Position", "PortfolioService", "PortfolioStore"]
