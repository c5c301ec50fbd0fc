# Routes package init
"""
eSync+ API — Routes Package
============================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles one area of the console.

Route Inventory:
    - catalog.py:     /api/product-brands, -units, -types, -currencies,
                      -tax-rates, /api/suppliers (shared CRUD factory)
    - categories.py:  /api/product-categories (+ hierarchy, path),
                      /api/product-code
    - products.py:    /api/products (+ copy)
    - storage.py:     /storage/* (bucket and folder registry)
    - settings.py:    /api/app-settings, /api/app-modules, /api/sidebar
    - database.py:    /tables, /tables/info, /api/d1/* (alias /api/db/*), /api/mysql/*, /api/transfer/*
    - health.py:      /health, /, /api/hello

Routes stay thin: read the request, call the service, shape the response.
"""
