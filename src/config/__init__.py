"""Configuração: logging estruturado e settings por ambiente."""
