"""App — coração do sistema: ciclo de vida, reconciliação e infraestrutura.

Subpastas:
- bootstrap/: composition root (factories, inicialização, wiring)
- domain/: modelos de frete, conta, ator, pagamento e ledger
- services/: engines de ciclo de vida, reconciliador, ledger e guard
- infra/: relógios e backends do Entity Store
- protocols/: contratos/interfaces
- observability/: request_id e métricas em logs estruturados

Padrão: app executa; api adapta; fsm governa; utils apoia.
"""
