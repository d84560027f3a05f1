"""Normalizers por provedor — conversão de payloads externos para o contrato interno.

Estrutura:
- openpix/: webhooks de cobrança PIX
"""

from api.normalizers.openpix import extract_payment_payload

__all__ = ["extract_payment_payload"]
