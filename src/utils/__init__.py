"""Utilitários compartilhados (exceções de infraestrutura)."""
