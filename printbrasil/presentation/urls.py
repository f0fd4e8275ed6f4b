"""
Define as rotas da API REST da loja: pedidos, frete e pagamentos.
"""
from django.urls import path

from . import views

urlpatterns = [
    # ====================================================================
    # 1. PEDIDOS
    # ====================================================================
    path('orders/', views.PedidosAPIView.as_view(), name='api_pedidos'),
    path('orders/<uuid:pk>/', views.PedidoDetalheAPIView.as_view(), name='api_pedido_detalhe'),
    path('orders/<uuid:pk>/status/', views.AtualizarStatusPedidoAPIView.as_view(), name='api_pedido_status'),

    # ====================================================================
    # 2. FRETE
    # ====================================================================
    path('shipping/calculate/', views.CalcularFreteAPIView.as_view(), name='api_calcular_frete'),

    # ====================================================================
    # 3. PAGAMENTOS
    # ====================================================================
    path('payments/process/', views.PagamentoCartaoAPIView.as_view(), name='api_pagamento_cartao'),
    path('payments/pix/', views.PagamentoPixAPIView.as_view(), name='api_pagamento_pix'),
    path('payments/boleto/', views.PagamentoBoletoAPIView.as_view(), name='api_pagamento_boleto'),
    path('payments/public-key/', views.ChavePublicaMercadoPagoAPIView.as_view(), name='api_chave_publica'),

    # Webhook do Mercado Pago (Rota externa, não requer autenticação)
    path('payments/webhook/', views.WebhookMercadoPago.as_view(), name='webhook_mercadopago'),
]
