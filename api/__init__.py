"""HTTP operations surface for quoteflow (FastAPI)."""
