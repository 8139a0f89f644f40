"""State transition rules for deals and leads."""
