"""Authentication, authorization and play statistics for the TuneTally API."""
