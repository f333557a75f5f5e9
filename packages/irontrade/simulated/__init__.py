"""Simulated backend: ledger, matching engine, clocks, bar data, environment.

Public surface::

    from packages.irontrade.simulated.broker import SimulatedBroker, SimulatedBrokerBuilder
    from packages.irontrade.simulated.client import SimulatedClient
    from packages.irontrade.simulated.context import SimulatedContext
    from packages.irontrade.simulated.data import BarDataSource, InMemoryBarDataSource, CsvBarDataSource
    from packages.irontrade.simulated.environment import SimulatedEnvironment, SimulatedEnvironmentBuilder
    from packages.irontrade.simulated.time import Clock, ManualClock, SystemClock
"""
