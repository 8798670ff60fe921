"""Web API for TransportEd."""
