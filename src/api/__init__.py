"""API — camada de borda HTTP.

Responsabilidades:
- Receber webhooks do provedor PIX e ações de usuários
- Validar assinaturas e payloads
- Normalizar dados para o contrato interno
- Mapear resultados de domínio para respostas HTTP

Subpastas:
- auth/: identidade do ator vinda do gateway de autenticação
- connectors/: adapters HTTP por provedor
- normalizers/: conversão de payloads externos → contrato interno
- routes/: endpoints HTTP (webhooks, fretes, contas, health)

NÃO PODE conter: FSM, regras de ciclo de vida, persistência.
"""
