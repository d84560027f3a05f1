"""Modelos de domínio: frete, conta, ator, eventos de pagamento e ledger."""
