"""testsets: select regression tests with test-set expressions."""

__version__ = "0.1.0"
