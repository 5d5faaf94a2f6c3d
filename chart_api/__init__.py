"""HTTP boundary for the chart data engine."""
