"""Connectors — integração com provedores externos (entrada de webhooks)."""
