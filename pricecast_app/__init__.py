"""Application layer: settings, Redis persistence and runtime wiring for pricecast."""
