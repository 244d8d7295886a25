"""
List Scanner Backend — API Routes Package
==========================================

Route Inventory:
    - photos.py:  POST/GET      /api/photos
                  GET/DELETE    /api/photos/{id}
                  GET           /api/photos/{id}/image
                  POST          /api/photos/{id}/scan
    - lists.py:   POST          /api/lists/from-text
                  GET           /api/lists
                  GET/PATCH/DELETE /api/lists/{id}
                  GET/POST      /api/lists/{id}/items
                  PUT           /api/lists/{id}/items/order
    - items.py:   PATCH/DELETE  /api/items/{id}
                  POST          /api/items/{id}/toggle
    - health.py:  GET           /health
    - preferences.py:
                  GET/PUT       /api/consent
                  GET           /api/usage
                  POST          /api/usage/warning/dismiss

Routes handle HTTP only: they read the request, call a repository or
service, and raise the Failure's error for the global exception handlers.
"""
