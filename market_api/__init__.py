"""HTTP boundary for the marketplace settlement engine."""
