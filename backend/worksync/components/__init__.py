"""Core Business Components.

- workspace: the local workspace tree, its reducer and its reconciliation
  with the persistence service
"""
