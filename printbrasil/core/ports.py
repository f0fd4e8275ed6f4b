# printbrasil/core/ports.py
"""
Definição das Portas (Interfaces/Protocolos) da Arquitetura Limpa.

Estes protocolos definem o contrato que a camada de Infraestrutura (Repositorios, Gateways)
DEVE seguir para se conectar à camada Core (Casos de Uso).
"""

from typing import Protocol, List, Optional, Dict, Any
from abc import abstractmethod
from decimal import Decimal

# Importa as Entidades que definem o Contrato de Dados
from printbrasil.core.entities import (
    Produto, Pedido, ItemPedido, Usuario, TransacaoPagamento, Pacote
)


# ====================================================================
# 1. REPOSITÓRIOS (Portas de Persistência)
# ====================================================================

class IProdutoRepository(Protocol):
    """Leitura do catálogo. O core nunca escreve produtos."""

    @abstractmethod
    def buscar_por_id(self, produto_id: str) -> Optional[Produto]: ...


class IPedidoRepository(Protocol):
    """Protocolo para a persistência e gestão de Pedidos."""

    @abstractmethod
    def criar_pedido_com_itens(self, pedido: Pedido, itens: List[ItemPedido]) -> Pedido:
        """
        Grava o pedido e todos os itens em uma única transação atômica.
        Se qualquer item falhar, nada é gravado.
        """
        ...

    @abstractmethod
    def buscar_por_id(self, pedido_id: str) -> Optional[Pedido]: ...

    @abstractmethod
    def buscar_por_chave_idempotencia(self, chave: str) -> Optional[Pedido]: ...

    @abstractmethod
    def listar_itens(self, pedido_id: str) -> List[ItemPedido]: ...

    @abstractmethod
    def listar_todos_pedidos(self, status: Optional[str] = None) -> List[Pedido]: ...

    @abstractmethod
    def listar_pedidos_por_usuario(self, usuario_id: str) -> List[Pedido]: ...

    @abstractmethod
    def atualizar_status(self, pedido_id: str, novo_status: str, id_externo_pagamento: Optional[str] = None) -> Pedido: ...


class IConfiguracaoRepository(Protocol):
    """Chave/valor administrável (tokens de provedores, ambiente)."""

    @abstractmethod
    def obter(self, chave: str) -> Optional[str]: ...


# ====================================================================
# 2. GATEWAYS (Portas de Serviços Externos)
# ====================================================================

class IGatewayPagamento(Protocol):
    """Protocolo para serviços externos de processamento de pagamento."""

    @abstractmethod
    def criar_pagamento(self, pedido: Pedido, metodo: str, usuario: Usuario, dados: dict) -> TransacaoPagamento:
        """Cria o pagamento com external_reference = pedido.id."""
        ...

    @abstractmethod
    def buscar_pagamento(self, transacao_id: str) -> TransacaoPagamento: ...


class IProvedorFrete(Protocol):
    """Provedor de cotações de frete (ex: Melhor Envio)."""

    @abstractmethod
    def cotar(
        self,
        cep_origem: str,
        cep_destino: str,
        pacote: Pacote,
        valor_seguro: Decimal,
        token: str,
        ambiente: str,
    ) -> List[Dict[str, Any]]:
        """
        Retorna as cotações cruas do provedor. Levanta ServicoExternoError
        em qualquer falha de comunicação ou resposta não 2xx.
        """
        ...
