"""Normalizer OpenPix — envelope do provedor para o contrato plano."""

from api.normalizers.openpix.extractor import extract_payment_payload, is_envelope

__all__ = ["extract_payment_payload", "is_envelope"]
