"""Resource adapters and provider errors."""
