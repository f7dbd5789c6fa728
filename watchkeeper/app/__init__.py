"""Application wiring: task registry, dependency container and lifespan."""
