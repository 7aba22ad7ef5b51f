"""Salon settlement engine: checkout pricing and payroll settlement."""

__version__ = "0.1.0"
