"""Personal RSS dashboard: categorised feed aggregation with a cached result."""
