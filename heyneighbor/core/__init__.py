"""
Core utilities shared across the HeyNeighbor service.

This package hosts configuration, the outbound mailer, credential hashing,
rate limiting and small helpers used by routers and services.
"""
