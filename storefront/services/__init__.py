"""
                        Services Module

Storefront business logic with the hybrid architecture pattern:
external collaborators (repositories, change feed) have in-memory
(development) and real (production) implementations.

Services:
    - pricing: phone validation, shipping fees, totals, formatting
    - repository: hosted orders/products tables
    - realtime: change feed subscriptions
    - store: cached tables refreshed by the change feed
    - order_form / admin_orders: landing form and admin table actions
    - export_manager: CSV/XLSX export
"""
