"""Local visualization components."""

from canscope.visualization.console import ConsoleVisualizer

__all__ = ["ConsoleVisualizer"]
