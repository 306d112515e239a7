"""HTTP layer: routes, middleware, dependencies and error handlers."""
