# Configuração da interface administrativa do Django para os modelos da Print Brasil.

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from printbrasil.catalog.models import Produto
from printbrasil.infrastructure.models import Configuracao, Usuario
from printbrasil.vendas.models import ItemPedido, Pedido

# ====================================================================
# 1. ADMIN PERSONALIZADO PARA USUÁRIOS
# ====================================================================

@admin.register(Usuario)
class UsuarioAdmin(BaseUserAdmin):
    """Usuário com login por e-mail (o modelo não tem 'username')."""

    list_display = ('email', 'first_name', 'last_name', 'is_admin', 'is_staff', 'is_active', 'telefone', 'cpf')
    list_filter = ('is_admin', 'is_staff', 'is_active')

    fieldsets = (
        (None, {'fields': ('email', 'password')}),
        ('Informações de Perfil', {'fields': ('first_name', 'last_name', 'telefone', 'cpf')}),
        ('Permissões', {'fields': ('is_active', 'is_admin', 'is_staff', 'is_superuser', 'groups', 'user_permissions')}),
        ('Datas', {'fields': ('last_login', 'date_joined')}),
    )
    add_fieldsets = (
        (None, {
            'classes': ('wide',),
            'fields': ('email', 'password1', 'password2', 'is_admin'),
        }),
    )

    search_fields = ('email', 'first_name', 'last_name')
    ordering = ('email',)


# ====================================================================
# 2. ADMIN PARA PRODUTOS
# ====================================================================

@admin.register(Produto)
class ProdutoAdmin(admin.ModelAdmin):
    list_display = ('nome', 'categoria', 'modo_preco', 'preco_formatado', 'ativo', 'data_criacao')
    list_filter = ('ativo', 'categoria', 'modo_preco')
    search_fields = ('nome', 'descricao')
    ordering = ('nome',)
    fieldsets = (
        ('Informações Básicas', {
            'fields': ('nome', 'descricao', 'categoria', 'imagem_url', 'ativo')
        }),
        ('Precificação', {
            'fields': ('modo_preco', 'preco_m2', 'preco_unitario'),
        }),
        ('Limites de Impressão', {
            'fields': ('largura_maxima', 'altura_maxima'),
        }),
    )


# ====================================================================
# 3. ADMIN PARA PEDIDOS
# ====================================================================

class ItemPedidoInline(admin.TabularInline):
    """Exibe os itens comprados dentro do detalhe do Pedido."""
    model = ItemPedido
    readonly_fields = (
        'nome_produto', 'modo_preco', 'preco_unitario', 'largura', 'altura', 'area',
        'quantidade', 'opcao_arte', 'arquivo_arte', 'taxa_criacao_arte', 'total',
    )
    exclude = ('produto',)
    extra = 0
    can_delete = False


@admin.register(Pedido)
class PedidoAdmin(admin.ModelAdmin):
    list_display = ('id', 'usuario', 'data_pedido', 'total', 'status', 'metodo_pagamento', 'tipo_entrega')
    list_filter = ('status', 'metodo_pagamento', 'tipo_entrega', 'data_pedido')
    search_fields = ('id', 'usuario__email', 'endereco_entrega', 'transacao_id')
    date_hierarchy = 'data_pedido'
    inlines = [ItemPedidoInline]

    # Só o status é editável; os valores vêm do recálculo do checkout
    readonly_fields = (
        'usuario',
        'data_pedido',
        'subtotal',
        'taxa_criacao_arte',
        'frete',
        'total',
        'metodo_pagamento',
        'transacao_id',
        'tipo_entrega',
        'endereco_entrega',
        'transportadora',
        'servico_frete',
        'prazo_entrega_dias',
        'chave_idempotencia',
    )

    def has_add_permission(self, request):
        """Impedir a criação de pedidos pela interface do Admin."""
        return False


# ====================================================================
# 4. CONFIGURAÇÕES
# ====================================================================

@admin.register(Configuracao)
class ConfiguracaoAdmin(admin.ModelAdmin):
    list_display = ('chave', 'atualizado_em')
    search_fields = ('chave',)
