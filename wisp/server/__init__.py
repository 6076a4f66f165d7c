"""HTTP surface: app factory, admission control, routes."""
