"""Inventory services package."""
from .profit import total_cost, net_profit, profit_summary
from .vehicle_service import VehicleService

__all__ = ['total_cost', 'net_profit', 'profit_summary', 'VehicleService']
