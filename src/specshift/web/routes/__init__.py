"""HTTP route modules, one router per concern."""
