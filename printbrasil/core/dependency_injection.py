# printbrasil/core/dependency_injection.py
"""
Módulo de Injeção de Dependência (DI).
Responsável por instanciar os Use Cases com suas dependências de Repositórios/Gateways
concretos da camada de Infraestrutura.
"""
from decimal import Decimal

from django.conf import settings

from printbrasil.infrastructure.repositories import (
    ProdutoRepositoryDjango,
    PedidoRepositoryDjango,
    ConfiguracaoRepositoryDjango,
)
from printbrasil.infrastructure.gateways import MercadoPagoGateway, MelhorEnvioGateway
from .entities import ConfiguracaoFrete, PoliticaFrete
from .frete import CEP_ORIGEM, ParametrosEstimativa, ResolvedorFrete
from .use_cases import (
    ENDERECO_RETIRADA_PADRAO,
    CriarPedidoUseCase,
    DetalharPedidoUseCase,
    GerenciarPedidosAdminUseCase,
    ListarPedidosDoUsuarioUseCase,
    ProcessarPagamentoUseCase,
    ProcessarWebhookPagamentoUseCase,
)

# Repositórios Concretos (sem estado, podem ser compartilhados)
produto_repo = ProdutoRepositoryDjango()
pedido_repo = PedidoRepositoryDjango()
configuracao_repo = ConfiguracaoRepositoryDjango()


def _politica_frete() -> PoliticaFrete:
    return PoliticaFrete(
        minimo=Decimal(str(getattr(settings, "FRETE_MINIMO", "10.00"))),
        maximo=Decimal(str(getattr(settings, "FRETE_MAXIMO", "200.00"))),
    )


# ====================================================================
# Use Cases de Pedido
# ====================================================================

def get_criar_pedido_use_case() -> CriarPedidoUseCase:
    return CriarPedidoUseCase(
        produto_repo=produto_repo,
        pedido_repo=pedido_repo,
        politica_frete=_politica_frete(),
        endereco_retirada=getattr(settings, "ENDERECO_RETIRADA", ENDERECO_RETIRADA_PADRAO),
    )

def get_listar_pedidos_use_case() -> ListarPedidosDoUsuarioUseCase:
    return ListarPedidosDoUsuarioUseCase(pedido_repo)

def get_detalhar_pedido_use_case() -> DetalharPedidoUseCase:
    return DetalharPedidoUseCase(pedido_repo)

def get_gerenciar_pedidos_admin_use_case() -> GerenciarPedidosAdminUseCase:
    return GerenciarPedidosAdminUseCase(pedido_repo)


# ====================================================================
# Frete
# ====================================================================

def get_resolvedor_frete() -> ResolvedorFrete:
    """
    Lê as credenciais a cada requisição: a tabela de configurações (editável
    no admin) tem prioridade sobre as variáveis de ambiente.
    """
    token = configuracao_repo.obter("MELHOR_ENVIO_TOKEN") or getattr(settings, "MELHOR_ENVIO_TOKEN", "")
    ambiente = configuracao_repo.obter("MELHOR_ENVIO_ENV") or getattr(settings, "MELHOR_ENVIO_ENV", "sandbox")
    cep_origem = getattr(settings, "FRETE_CEP_ORIGEM", CEP_ORIGEM)

    return ResolvedorFrete(
        provedor=MelhorEnvioGateway(),
        configuracao=ConfiguracaoFrete(token=token or None, ambiente=ambiente),
        cep_origem=cep_origem,
        parametros_estimativa=ParametrosEstimativa(prefixo_origem=cep_origem[:2]),
    )


# ====================================================================
# Use Cases de Pagamento
# ====================================================================

def get_processar_pagamento_use_case() -> ProcessarPagamentoUseCase:
    return ProcessarPagamentoUseCase(pedido_repo=pedido_repo, pagamento_gateway=MercadoPagoGateway())

def get_processar_webhook_use_case() -> ProcessarWebhookPagamentoUseCase:
    return ProcessarWebhookPagamentoUseCase(pedido_repo=pedido_repo, pagamento_gateway=MercadoPagoGateway())
