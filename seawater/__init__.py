"""
Seawater climate risk engine.

Resolves property addresses into time-bounded climate risk assessments,
answers radius searches over known properties and drives rate-limited
bulk analysis on top of external geocoding and hazard-data providers.
"""

__version__ = "0.1.0"
