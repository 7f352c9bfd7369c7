"""Third-party vendor clients."""
