"""Remote analysis and notification agents."""
