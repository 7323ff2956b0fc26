"""Event sourcing primitives: aggregates, events, versions, envelopes, projections and store interfaces."""

__version__ = "0.1.0"