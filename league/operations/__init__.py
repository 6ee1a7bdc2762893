"""
Operations Layer

Business logic that composes database access into multi-step workflows.
Operations accept an optional session so several of them can share one
transaction.

Architecture:
- Database layer: models, engine and the match store
- Operations layer: player directory and league administration
- Command layer: Discord integration and user interface

Modules:
- PlayerOperations: player directory, CRUD, rank edits and authentication
- AdminOperations: weekly rollover, dashboard stats and standings reconciliation
"""
