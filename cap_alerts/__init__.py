"""CAP alert notifier: forwards important NWS weather alerts to IFTTT."""
