# Services package init
"""
Map Points API: Services Layer
=================================

What:  Business rules and persistence sitting between routes (HTTP) and the database.

Service Inventory:
    - point_validator: validate_point_payload(), raw payload → PointDraft
    - point_store: PointStore, create / list_points / count over the points table
"""
