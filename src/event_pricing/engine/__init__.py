"""Engine subpackage - pricing matrix model, tier chain and rule resolution."""
from .models import Category, Cell, PricingRule, PricingState, Quote, RemovalCheck
from .quote import resolve_price
from . import resolver

__all__ = ['Category', 'Cell', 'PricingRule', 'PricingState', 'Quote', 'RemovalCheck', 'resolve_price', 'resolver']
