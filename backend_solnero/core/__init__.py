"""
Core utilities: errors, caching and rate limiting.

Cross-cutting pieces shared by the services and the API server. State-holding
objects (TTLStore, RateLimiter) are plain classes so each app or test builds
its own isolated instance.
"""
