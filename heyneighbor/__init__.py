"""HeyNeighbor lending-community data service."""
