"""Risk management: reversal exit, pyramiding, ratcheting stop."""

from ema_trend_bot.risk.manager import RiskManager, evaluate_risk

__all__ = ["RiskManager", "evaluate_risk"]
