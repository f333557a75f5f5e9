"""Live Alpaca backend (REST/JSON).

Public surface::

    from packages.irontrade.alpaca.client import AlpacaClient, AlpacaCredentials
    from packages.irontrade.alpaca.market import AlpacaMarket, LiveEnvironment
"""
