"""Domain layer - viewer state, row identity, filtering and export rules.

Nothing in this package touches the SQL engine or the message transport;
everything here is deterministic and testable on plain values.
"""
