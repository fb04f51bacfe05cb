"""Provider-agnostic reconciliation core."""
