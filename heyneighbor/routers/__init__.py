"""
FastAPI routers grouped by domain (auth, users, items, borrow, messages).

Each module exposes an APIRouter included by the app factory.
"""
