"""PG Manager package.

Rental management for paying-guest houses, organized by feature modules
(pgs, rooms, members, payments, leaving, expenses, dashboard, reports) with a
thin Flask controller layer over service and repository layers.
"""
