"""Backend-independent trading API.

Public surface::

    from packages.irontrade.api.common import AssetPair, Quantity, Notional, Order, Bar, Account
    from packages.irontrade.api.request import OrderRequest
    from packages.irontrade.api.client import Client, Market, Environment
"""
