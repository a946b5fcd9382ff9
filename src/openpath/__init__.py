"""OpenPath access-control rule engine."""
