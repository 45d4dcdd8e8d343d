# __init__.py - Observe package
from .trace import StepTrace, RunTrace
from .hooks import HookManager

__all__ = ["StepTrace", "RunTrace", "HookManager"]
