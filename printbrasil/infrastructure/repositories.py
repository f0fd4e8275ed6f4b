"""
Camada de Infraestrutura: Implementação de Repositórios.

Esta camada traduz as operações abstratas definidas nas Portas do Core
em chamadas concretas ao Django ORM.
"""
import logging
from decimal import InvalidOperation
from typing import List, Optional

from django.apps import apps
from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

# Importações da Camada CORE (ENTIDADES e PORTAS)
from printbrasil.core.entities import Pedido, ItemPedido, Produto
from printbrasil.core.ports import (
    IProdutoRepository,
    IPedidoRepository,
    IConfiguracaoRepository,
)
from printbrasil.core.exceptions import PedidoNaoEncontradoError, PersistenciaError

from .mappers import ItemPedidoMapper, PedidoMapper, ProdutoMapper

logger = logging.getLogger(__name__)


# Helper para Lazy Loading
def get_model(app_label, model_name):
    """Busca o modelo Django de forma segura (Lazy Loading)."""
    return apps.get_model(app_label, model_name)


# ====================================================================
# 1. CATÁLOGO
# ====================================================================

class ProdutoRepositoryDjango(IProdutoRepository):
    """Leitura do catálogo usando o Django ORM."""

    @property
    def ProdutoModel(self):
        return get_model('catalog', 'Produto')

    def buscar_por_id(self, produto_id: str) -> Optional[Produto]:
        try:
            model = self.ProdutoModel.objects.get(pk=produto_id)
        except (self.ProdutoModel.DoesNotExist, ValidationError, ValueError):
            # ID que nem é um UUID válido equivale a produto inexistente
            return None
        return ProdutoMapper.to_entity(model)


# ====================================================================
# 2. PEDIDOS
# ====================================================================

class PedidoRepositoryDjango(IPedidoRepository):
    """Implementação do PedidoRepository usando o Django ORM."""

    @property
    def PedidoModel(self):
        return get_model('vendas', 'Pedido')

    @property
    def ItemPedidoModel(self):
        return get_model('vendas', 'ItemPedido')

    def _buscar_model(self, pedido_id: str):
        try:
            return self.PedidoModel.objects.get(pk=pedido_id)
        except (self.PedidoModel.DoesNotExist, ValidationError, ValueError):
            return None

    def criar_pedido_com_itens(self, pedido: Pedido, itens: List[ItemPedido]) -> Pedido:
        """
        Grava o pedido e todos os itens na mesma transação.
        Qualquer falha desfaz tudo e vira PersistenciaError.
        """
        try:
            with transaction.atomic():
                model = PedidoMapper.to_model(pedido)
                model.save()

                item_models = [ItemPedidoMapper.to_model(item, pedido_id=model.pk) for item in itens]
                self.ItemPedidoModel.objects.bulk_create(item_models)

                pedido_salvo = PedidoMapper.to_entity(model)
                pedido_salvo.itens = [ItemPedidoMapper.to_entity(m) for m in item_models]
        except (DatabaseError, InvalidOperation):
            logger.exception("[Pedido] Falha ao gravar pedido do usuário %s", pedido.usuario_id)
            raise PersistenciaError()

        return pedido_salvo

    def buscar_por_id(self, pedido_id: str) -> Optional[Pedido]:
        return PedidoMapper.to_entity(self._buscar_model(pedido_id))

    def buscar_por_chave_idempotencia(self, chave: str) -> Optional[Pedido]:
        model = self.PedidoModel.objects.filter(chave_idempotencia=chave).first()
        return PedidoMapper.to_entity(model)

    def listar_itens(self, pedido_id: str) -> List[ItemPedido]:
        qs = self.ItemPedidoModel.objects.filter(pedido_id=pedido_id)
        return [ItemPedidoMapper.to_entity(model) for model in qs]

    def listar_pedidos_por_usuario(self, usuario_id: str) -> List[Pedido]:
        """Lista todos os pedidos de um usuário, do mais recente ao mais antigo."""
        qs = self.PedidoModel.objects.filter(usuario_id=usuario_id).order_by('-data_pedido')
        return [PedidoMapper.to_entity(model) for model in qs]

    def listar_todos_pedidos(self, status: Optional[str] = None) -> List[Pedido]:
        """Lista todos os pedidos, opcionalmente filtrados por status."""
        qs = self.PedidoModel.objects.all()
        if status:
            qs = qs.filter(status=status)
        qs = qs.order_by('-data_pedido')
        return [PedidoMapper.to_entity(model) for model in qs]

    @transaction.atomic
    def atualizar_status(self, pedido_id: str, novo_status: str, id_externo_pagamento: Optional[str] = None) -> Pedido:
        """
        Atualiza o status de um pedido (e o ID do pagamento, se informado).
        A linha fica travada até o fim da transação.
        """
        try:
            model = self.PedidoModel.objects.select_for_update().get(pk=pedido_id)
        except (self.PedidoModel.DoesNotExist, ValidationError, ValueError):
            raise PedidoNaoEncontradoError(f"Pedido ID {pedido_id} não existe para atualização.")

        model.status = novo_status
        campos = ['status', 'data_atualizacao']
        if id_externo_pagamento:
            model.transacao_id = id_externo_pagamento
            campos.append('transacao_id')
        model.save(update_fields=campos)
        return PedidoMapper.to_entity(model)


# ====================================================================
# 3. CONFIGURAÇÕES
# ====================================================================

class ConfiguracaoRepositoryDjango(IConfiguracaoRepository):

    @property
    def ConfiguracaoModel(self):
        return get_model('infrastructure', 'Configuracao')

    def obter(self, chave: str) -> Optional[str]:
        valor = self.ConfiguracaoModel.objects.filter(chave=chave).values_list('valor', flat=True).first()
        return valor or None
