"""Per-entity reconcilers that upsert remote records into local tables.

Each reconciler subclasses BaseReconciler, which owns the shared algorithm:
key lookup, create-or-merge, timestamp preservation, identity mapping and
per-record commit/rollback.
"""
