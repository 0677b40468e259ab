"""StockPulse: watch-list analysis with recorded history and email alerts."""

__version__ = "1.0.0"
