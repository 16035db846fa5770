"""
agent-stream-app: flow persistence and settings store for an agent stream engine.
"""

__version__ = "0.4.0"
