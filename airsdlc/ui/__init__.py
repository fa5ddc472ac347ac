"""AirSDLC read-only JSON API."""
