"""Infrastructure layer - persistence, gateways, locks, event bus."""
