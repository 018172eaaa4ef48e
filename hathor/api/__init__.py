"""HTTP transport, declarative handlers and static file endpoints."""
