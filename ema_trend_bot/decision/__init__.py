"""Decision composer: final action, contract size, stop, narrative."""

from ema_trend_bot.decision.composer import DecisionComposer, compute_contract_size

__all__ = ["DecisionComposer", "compute_contract_size"]
