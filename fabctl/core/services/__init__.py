"""Services — the operations fabctl performs against a network."""
