"""
Mapeadores (Mappers) para converter entre:
1. Modelos do Django ORM
2. Entidades de Domínio (printbrasil.core.entities)
"""
from typing import Any, Optional, Type

from django.apps import apps
from django.db import models

# Importa as entidades do Core
from printbrasil.core.entities import (
    Usuario as UsuarioEntity,
    Produto as ProdutoEntity,
    Pedido as PedidoEntity,
    ItemPedido as ItemPedidoEntity,
)


# ====================================================================
# Uso de apps.get_model para evitar dependências circulares
# ====================================================================

def get_model(app_label: str, model_name: str):
    """Retorna um modelo do Django de forma segura (lazy loading)."""
    return apps.get_model(app_label, model_name)


def _id(valor) -> Optional[str]:
    return str(valor) if valor is not None else None


# ====================================================================
# MAPPER DE USUÁRIO
# ====================================================================

class UsuarioMapper:

    @staticmethod
    def to_entity(model: Any) -> Optional[UsuarioEntity]:
        if not model:
            return None
        return UsuarioEntity(
            id=str(model.pk),
            email=model.email,
            nome=model.get_full_name() or model.email,
            is_admin=bool(model.is_admin or model.is_staff),
        )


# ====================================================================
# MAPPER DO CATÁLOGO
# ====================================================================

class ProdutoMapper:
    """Mapeador para Produto (somente leitura no Core)."""

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('catalog', 'Produto')

    @staticmethod
    def to_entity(model: Any) -> Optional[ProdutoEntity]:
        if not model:
            return None
        return ProdutoEntity(
            id=str(model.pk),
            nome=model.nome,
            descricao=model.descricao,
            categoria=model.categoria,
            modo_preco=model.modo_preco,
            preco_m2=model.preco_m2,
            preco_unitario=model.preco_unitario,
            largura_maxima=model.largura_maxima,
            altura_maxima=model.altura_maxima,
            imagem_url=model.imagem_url,
            ativo=model.ativo,
        )


# ====================================================================
# MAPPERS DE PEDIDO
# ====================================================================

class ItemPedidoMapper:
    """Mapeador para ItemPedido."""

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('vendas', 'ItemPedido')

    @staticmethod
    def to_entity(model: Any) -> Optional[ItemPedidoEntity]:
        if not model:
            return None
        return ItemPedidoEntity(
            id=str(model.pk),
            pedido_id=_id(model.pedido_id),
            produto_id=_id(model.produto_id),
            nome_produto=model.nome_produto,
            modo_preco=model.modo_preco,
            preco_unitario=model.preco_unitario,
            total=model.total,
            largura=model.largura,
            altura=model.altura,
            area=model.area,
            quantidade=model.quantidade,
            opcao_arte=model.opcao_arte,
            arquivo_arte=model.arquivo_arte,
            taxa_criacao_arte=model.taxa_criacao_arte,
        )

    @classmethod
    def to_model(cls, entity: ItemPedidoEntity, pedido_id, model: Optional[Any] = None) -> Any:
        if not model:
            model = cls.model_class()(pedido_id=pedido_id)

        # Snapshot dos dados, o produto pode mudar de preço depois
        model.produto_id = entity.produto_id
        model.nome_produto = entity.nome_produto
        model.modo_preco = entity.modo_preco
        model.preco_unitario = entity.preco_unitario
        model.total = entity.total
        model.largura = entity.largura
        model.altura = entity.altura
        model.area = entity.area
        model.quantidade = entity.quantidade
        model.opcao_arte = entity.opcao_arte
        model.arquivo_arte = entity.arquivo_arte
        model.taxa_criacao_arte = entity.taxa_criacao_arte
        return model


class PedidoMapper:
    """Mapeador para Pedido."""

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('vendas', 'Pedido')

    @staticmethod
    def to_entity(model: Any) -> Optional[PedidoEntity]:
        """Converte Pedido Model para Pedido Entity, sem os itens."""
        if not model:
            return None

        return PedidoEntity(
            id=str(model.pk),
            usuario_id=str(model.usuario_id),
            status=model.status,
            tipo_entrega=model.tipo_entrega,
            subtotal=model.subtotal,
            taxa_criacao_arte=model.taxa_criacao_arte,
            frete=model.frete,
            total=model.total,
            metodo_pagamento=model.metodo_pagamento,
            endereco_entrega=model.endereco_entrega,
            transportadora=model.transportadora,
            servico_frete=model.servico_frete,
            prazo_entrega_dias=model.prazo_entrega_dias,
            chave_idempotencia=model.chave_idempotencia,
            transacao_id=model.transacao_id,
            data_pedido=model.data_pedido,
            data_atualizacao=model.data_atualizacao,
        )

    @classmethod
    def to_model(cls, entity: PedidoEntity, model: Optional[Any] = None) -> Any:
        if not model:
            model = cls.model_class()(usuario_id=entity.usuario_id)

        model.status = entity.status
        model.tipo_entrega = entity.tipo_entrega
        model.subtotal = entity.subtotal
        model.taxa_criacao_arte = entity.taxa_criacao_arte
        model.frete = entity.frete
        model.total = entity.total
        model.metodo_pagamento = entity.metodo_pagamento
        model.endereco_entrega = entity.endereco_entrega
        model.transportadora = entity.transportadora
        model.servico_frete = entity.servico_frete
        model.prazo_entrega_dias = entity.prazo_entrega_dias
        model.chave_idempotencia = entity.chave_idempotencia
        model.transacao_id = entity.transacao_id
        return model
