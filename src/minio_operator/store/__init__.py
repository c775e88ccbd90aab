"""Resource record persistence."""
