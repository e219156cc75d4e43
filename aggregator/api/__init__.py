"""HTTP API for the quote aggregator."""
