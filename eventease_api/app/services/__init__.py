"""
Service layer abstraction.

Each service encapsulates business logic for a domain.  The stores
used here keep everything in memory; they can be swapped for a real
data‑access layer without changing API handlers.
"""
