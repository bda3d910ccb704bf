"""
High-level use cases for the HeyNeighbor API.

Each service module orchestrates the repository to implement business rules
(signup and verification, login gating, item retirement). Routers call these
services instead of touching the database directly.
"""
