"""Infraestrutura: relógios e implementações do Entity Store."""
