"""Property-based tests (Hypothesis)."""
