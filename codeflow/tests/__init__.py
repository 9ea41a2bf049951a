"""Code Flow test suite."""
