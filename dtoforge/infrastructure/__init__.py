"""Infrastructure Layer — adapters around third-party engines and logging."""
