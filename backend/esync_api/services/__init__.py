# Services package init
"""
eSync+ API — Services Layer
============================

What:  Business logic between routes (HTTP) and the database.
How:   Services take a session and plain data, enforce the catalog rules and
       raise ESyncError subclasses that main.py maps to HTTP responses.

Service Inventory:
    - CatalogService: shared CRUD for the parameter tables; Brand, Unit,
      ProductType, Currency, TaxRate and Supplier services configure it
    - CategoryService: three-level category tree, paths, product codes
    - ProductService: products, images and package contents
    - StorageService / FolderService: object bucket and folder registry
    - SettingsService / SidebarService: key/value settings, sidebar layout
    - SourceDatabaseService: external MySQL source (PyMySQL, tenacity)
    - DatabaseInfoService / TransferService: table statistics, batch import
"""
