"""HTTP server for the ESG intelligence service."""
