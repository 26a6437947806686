"""Inventory application for the hospital store.

Models, services, serializers, views and routes for stock items,
department requests, purchase orders, releases and staff accounts.
"""
