"""HTTP API: routes, middleware, error boundary and background maintenance."""
