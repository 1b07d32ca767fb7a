"""
Business logic services package.

WHY: Services contain business logic separated from API routes and storage,
following the three-layer architecture (API → Service → Store).
"""
