import logging

from django.conf import settings
from rest_framework import status
from rest_framework.permissions import AllowAny, BasePermission, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from printbrasil.core import dependency_injection as di
from printbrasil.core.exceptions import (
    AcessoNegadoError,
    BaseErroCore,
    ConfiguracaoAusenteError,
    DadosInvalidosError,
    ItemNaoEncontradoError,
    PagamentoFalhouError,
    PersistenciaError,
    ServicoExternoError,
    ValoresDivergentesError,
)
from printbrasil.core.monetario import ZERO
from printbrasil.infrastructure.mappers import UsuarioMapper
from .serializers import (
    AtualizarStatusSerializer,
    CalcularFreteSerializer,
    CriarPedidoSerializer,
    ItemPedidoSerializer,
    OpcaoFreteSerializer,
    PagamentoCartaoSerializer,
    PagamentoSerializer,
    PedidoSerializer,
    TransacaoSerializer,
)

logger = logging.getLogger(__name__)


# ====================================================================
# TRADUÇÃO DE ERROS DO CORE PARA HTTP
# ====================================================================

# A ordem importa: subclasses antes das classes base.
_STATUS_POR_ERRO = (
    (PagamentoFalhouError, status.HTTP_402_PAYMENT_REQUIRED),
    (ServicoExternoError, status.HTTP_502_BAD_GATEWAY),
    (ValoresDivergentesError, status.HTTP_400_BAD_REQUEST),
    (DadosInvalidosError, status.HTTP_400_BAD_REQUEST),
    (ItemNaoEncontradoError, status.HTTP_404_NOT_FOUND),
    (AcessoNegadoError, status.HTTP_403_FORBIDDEN),
    (ConfiguracaoAusenteError, status.HTTP_500_INTERNAL_SERVER_ERROR),
    (PersistenciaError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def resposta_erro(erro: BaseErroCore) -> Response:
    """Converte uma exceção do Core em Response({'message': ...}) com o status adequado."""
    for classe, codigo in _STATUS_POR_ERRO:
        if isinstance(erro, classe):
            return Response({'message': erro.message}, status=codigo)
    return Response({'message': erro.message}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def resposta_validacao(serializer) -> Response:
    return Response(
        {'message': 'Valores inválidos enviados', 'errors': serializer.errors},
        status=status.HTTP_400_BAD_REQUEST,
    )


class EhAdministrador(BasePermission):
    """Administrador da loja (is_admin) ou staff do Django."""

    def has_permission(self, request, view):
        usuario = request.user
        return bool(usuario and usuario.is_authenticated and (usuario.is_admin or usuario.is_staff))


def _usuario(request):
    return UsuarioMapper.to_entity(request.user)


def _pedido_com_itens(pedido, itens) -> dict:
    return {
        'order': PedidoSerializer(pedido).data,
        'items': ItemPedidoSerializer(itens, many=True).data,
    }


# ====================================================================
# 1. PEDIDOS
# ====================================================================

class PedidosAPIView(APIView):
    """
    GET: histórico de pedidos do usuário (admin vê todos, com ?status=).
    POST: checkout. Os valores são recalculados no servidor antes de gravar.
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        pedidos = di.get_listar_pedidos_use_case().executar(
            usuario=_usuario(request),
            status=request.query_params.get('status') or None,
        )
        return Response(PedidoSerializer(pedidos, many=True).data)

    def post(self, request):
        serializer = CriarPedidoSerializer(data=request.data)
        if not serializer.is_valid():
            return resposta_validacao(serializer)

        try:
            pedido, itens, criado = di.get_criar_pedido_use_case().executar(
                usuario=_usuario(request),
                dados=serializer.to_dados_pedido(),
            )
        except BaseErroCore as e:
            return resposta_erro(e)

        return Response(
            _pedido_com_itens(pedido, itens),
            status=status.HTTP_201_CREATED if criado else status.HTTP_200_OK,
        )


class PedidoDetalheAPIView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        try:
            pedido, itens = di.get_detalhar_pedido_use_case().executar(pedido_id=pk, usuario=_usuario(request))
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(_pedido_com_itens(pedido, itens))


class AtualizarStatusPedidoAPIView(APIView):
    """Atualização manual de status pelo administrador."""
    permission_classes = [EhAdministrador]

    def patch(self, request, pk):
        serializer = AtualizarStatusSerializer(data=request.data)
        if not serializer.is_valid():
            return resposta_validacao(serializer)

        try:
            pedido = di.get_gerenciar_pedidos_admin_use_case().atualizar_status_manual(
                pedido_id=pk, novo_status=serializer.validated_data['status']
            )
        except BaseErroCore as e:
            return resposta_erro(e)

        logger.info("[Admin] Pedido %s atualizado para '%s' por %s", pk, pedido.status, request.user)
        return Response(PedidoSerializer(pedido).data)


# ====================================================================
# 2. FRETE
# ====================================================================

class CalcularFreteAPIView(APIView):
    """Cotação de frete (pública). Se o Melhor Envio falhar, devolve a estimativa local."""
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CalcularFreteSerializer(data=request.data)
        if not serializer.is_valid():
            return resposta_validacao(serializer)

        try:
            cotacao = di.get_resolvedor_frete().calcular(
                cep_destino=serializer.validated_data['destinationCEP'],
                pacote=serializer.to_pacote(),
                valor_seguro=serializer.validated_data.get('insuranceValue') or ZERO,
            )
        except BaseErroCore as e:
            return resposta_erro(e)

        corpo = {
            'options': OpcaoFreteSerializer(cotacao.opcoes, many=True).data,
            'originCEP': cotacao.cep_origem,
        }
        if cotacao.fallback:
            corpo['fallback'] = True
            corpo['fallbackReason'] = cotacao.motivo_fallback
        return Response(corpo)


# ====================================================================
# 3. PAGAMENTOS (MERCADO PAGO)
# ====================================================================

class PagamentoCartaoAPIView(APIView):
    """Cartão: resultado síncrono, o pedido já sai pago ou cancelado."""
    permission_classes = [IsAuthenticated]

    def post(self, request):
        serializer = PagamentoCartaoSerializer(data=request.data)
        if not serializer.is_valid():
            return resposta_validacao(serializer)

        try:
            transacao, pedido = di.get_processar_pagamento_use_case().pagar_cartao(
                pedido_id=serializer.validated_data['orderId'],
                usuario=_usuario(request),
                dados=serializer.to_dados_gateway(),
            )
        except BaseErroCore as e:
            return resposta_erro(e)

        return Response({
            'payment': TransacaoSerializer(transacao).data,
            'order': PedidoSerializer(pedido).data,
        })


class _PagamentoAssincronoAPIView(APIView):
    """PIX e boleto: devolve o QR Code / boleto; a confirmação chega pelo webhook."""
    permission_classes = [IsAuthenticated]
    acao = None

    def post(self, request):
        serializer = PagamentoSerializer(data=request.data)
        if not serializer.is_valid():
            return resposta_validacao(serializer)

        use_case = di.get_processar_pagamento_use_case()
        try:
            transacao, pedido = getattr(use_case, self.acao)(
                pedido_id=serializer.validated_data['orderId'],
                usuario=_usuario(request),
                dados=serializer.to_dados_gateway(),
            )
        except BaseErroCore as e:
            return resposta_erro(e)

        corpo = dict(TransacaoSerializer(transacao).data)
        corpo['order'] = PedidoSerializer(pedido).data
        return Response(corpo)


class PagamentoPixAPIView(_PagamentoAssincronoAPIView):
    acao = 'gerar_pix'


class PagamentoBoletoAPIView(_PagamentoAssincronoAPIView):
    acao = 'gerar_boleto'


class ChavePublicaMercadoPagoAPIView(APIView):
    """Chave pública usada pelo SDK do Mercado Pago no navegador para tokenizar o cartão."""
    permission_classes = [AllowAny]

    def get(self, request):
        return Response({'publicKey': getattr(settings, 'MERCADO_PAGO_PUBLIC_KEY', '')})


class WebhookMercadoPago(APIView):
    """
    Recebe as notificações do Mercado Pago para atualizar o status do pedido.
    Notificações repetidas não alteram pedidos já finalizados.
    """
    permission_classes = [AllowAny]
    authentication_classes = []

    def post(self, request):
        if hasattr(request.data, 'dict'):
            payload = request.data.dict()
        elif isinstance(request.data, dict):
            payload = dict(request.data)
        else:
            payload = {}
        # Formato antigo (IPN) manda topic/id na query string
        for chave in ('type', 'topic', 'id'):
            if chave not in payload and request.query_params.get(chave):
                payload[chave] = request.query_params.get(chave)
        if 'data' not in payload and payload.get('id'):
            payload['data'] = {'id': payload['id']}
        if 'data' not in payload and request.query_params.get('data.id'):
            payload['data'] = {'id': request.query_params.get('data.id')}

        try:
            resultado = di.get_processar_webhook_use_case().executar(payload)
        except ServicoExternoError as e:
            # 5xx faz o Mercado Pago reenviar a notificação mais tarde
            logger.error("[MercadoPago][Webhook] Falha ao consultar pagamento: %s", e.message)
            return Response({'status': 'error', 'message': e.message}, status=status.HTTP_502_BAD_GATEWAY)
        except BaseErroCore as e:
            return resposta_erro(e)

        return Response(resultado, status=status.HTTP_200_OK)
