"""HTTP routers other than authentication."""
