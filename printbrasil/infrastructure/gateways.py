import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

# Importa os Protocols e Entidades da camada Core
from printbrasil.core.ports import IGatewayPagamento, IProvedorFrete
from printbrasil.core.entities import (
    Pedido, Usuario, TransacaoPagamento, Pacote,
    PAGAMENTO_CARTAO, PAGAMENTO_PIX, PAGAMENTO_BOLETO,
)
from printbrasil.core.exceptions import (
    ConfiguracaoAusenteError, DadosInvalidosError, PagamentoFalhouError, ServicoExternoError
)

logger = logging.getLogger(__name__)


# ====================================================================
# GATEWAYS: Implementações concretas que se comunicam com APIs externas.
# ====================================================================

def _mensagem_erro(response) -> str:
    """Extrai a mensagem de erro devolvida pela API, se houver."""
    try:
        corpo = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(corpo, dict):
        return corpo.get("message") or corpo.get("error") or str(corpo)
    return str(corpo)


class MercadoPagoGateway(IGatewayPagamento):
    """
    Gateway para comunicação com a API de Pagamentos do Mercado Pago.
    Todo pagamento leva external_reference = id do pedido, que é como o
    webhook encontra o pedido depois.
    """

    TIMEOUT_CRIACAO = 15
    TIMEOUT_CONSULTA = 10

    def __init__(self, access_token: Optional[str] = None, notification_url: Optional[str] = None):
        self.api_base_url = "https://api.mercadopago.com/v1"
        self.access_token = access_token or getattr(settings, "MERCADO_PAGO_ACCESS_TOKEN", "")
        self.notification_url = (
            notification_url if notification_url is not None
            else getattr(settings, "MERCADO_PAGO_WEBHOOK_URL", "")
        )

        if not self.access_token:
            logger.error("[MercadoPago] MERCADO_PAGO_ACCESS_TOKEN não configurado. Pagamentos reais falharão.")

    def _headers(self, idempotente: bool = False) -> Dict[str, str]:
        if not self.access_token:
            raise ConfiguracaoAusenteError("Gateway de pagamento não configurado.")
        headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }
        if idempotente:
            headers["X-Idempotency-Key"] = str(uuid.uuid4())  # Para evitar duplicidade
        return headers

    @staticmethod
    def _payer(usuario: Usuario, dados: dict) -> Dict[str, Any]:
        payer = dict(dados.get("payer") or {})
        nomes = (usuario.nome or "").split()
        payer.setdefault("email", usuario.email)
        payer.setdefault("first_name", nomes[0] if nomes else "Cliente")
        payer.setdefault("last_name", nomes[-1] if len(nomes) > 1 else "")
        if "identification" not in payer and dados.get("cpf"):
            payer["identification"] = {"type": "CPF", "number": dados["cpf"]}
        return payer

    def _payload_base(self, pedido: Pedido, usuario: Usuario, payment_method_id: str, dados: dict) -> Dict[str, Any]:
        payload = {
            "transaction_amount": float(pedido.total),
            "description": f"Pedido {pedido.id} - Print Brasil",
            "payment_method_id": payment_method_id,
            "external_reference": str(pedido.id),
            "payer": self._payer(usuario, dados),
        }
        if self.notification_url:
            payload["notification_url"] = self.notification_url
        return payload

    def _criar(self, payload: Dict[str, Any], metodo: str) -> TransacaoPagamento:
        headers = self._headers(idempotente=True)
        try:
            response = requests.post(f"{self.api_base_url}/payments", json=payload, headers=headers,
                                     timeout=self.TIMEOUT_CRIACAO)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            detalhe = _mensagem_erro(e.response)
            logger.warning("[MercadoPago] Pagamento %s recusado para pedido %s: %s",
                           metodo, payload.get("external_reference"), detalhe)
            raise PagamentoFalhouError(f"Pagamento recusado pelo Mercado Pago: {detalhe}")
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error("[MercadoPago] Falha de comunicação: %s", e)
            raise PagamentoFalhouError(f"Erro de conexão com a API do Mercado Pago: {e}")

        transacao = self._para_transacao(data, metodo)
        logger.info("[MercadoPago] Pagamento %s criado (%s) para pedido %s",
                    transacao.referencia_externa, transacao.status_pagamento, transacao.pedido_id)
        return transacao

    @staticmethod
    def _para_transacao(data: Dict[str, Any], metodo: Optional[str] = None) -> TransacaoPagamento:
        dados_transacao = (data.get("point_of_interaction") or {}).get("transaction_data") or {}
        detalhes = data.get("transaction_details") or {}
        return TransacaoPagamento(
            referencia_externa=str(data.get("id")),
            status_pagamento=data.get("status") or "pending",
            valor=Decimal(str(data.get("transaction_amount") or 0)),
            metodo=metodo or data.get("payment_type_id") or data.get("payment_method_id") or "",
            pedido_id=data.get("external_reference") or None,
            detalhe_status=data.get("status_detail"),
            qr_code=dados_transacao.get("qr_code"),
            qr_code_base64=dados_transacao.get("qr_code_base64"),
            url_pagamento=dados_transacao.get("ticket_url") or detalhes.get("external_resource_url"),
            codigo_barras=(data.get("barcode") or {}).get("content"),
        )

    # --- MÉTODOS PRIVADOS DE PROCESSAMENTO ESPECÍFICO ---

    def _processar_pix(self, pedido: Pedido, usuario: Usuario, dados: dict) -> TransacaoPagamento:
        """Gera o QR Code PIX. O pedido só é confirmado pelo webhook."""
        payload = self._payload_base(pedido, usuario, "pix", dados)
        return self._criar(payload, PAGAMENTO_PIX)

    def _processar_boleto(self, pedido: Pedido, usuario: Usuario, dados: dict) -> TransacaoPagamento:
        """Gera o boleto (linha digitável e URL do PDF)."""
        payload = self._payload_base(pedido, usuario, "bolbradesco", dados)
        return self._criar(payload, PAGAMENTO_BOLETO)

    def _processar_cartao(self, pedido: Pedido, usuario: Usuario, dados: dict) -> TransacaoPagamento:
        """
        Pagamento com cartão usando o token gerado no navegador pelo SDK do
        Mercado Pago. A resposta já traz approved ou rejected.
        """
        card_token = dados.get("token")
        if not card_token:
            raise DadosInvalidosError("Token de cartão ausente na requisição.")

        payload = self._payload_base(pedido, usuario, dados.get("payment_method_id") or "visa", dados)
        payload["token"] = card_token
        payload["installments"] = int(dados.get("installments") or 1)
        return self._criar(payload, PAGAMENTO_CARTAO)

    # --- MÉTODOS PÚBLICOS QUE IMPLEMENTAM O PROTOCOLO CORE ---

    def criar_pagamento(self, pedido: Pedido, metodo: str, usuario: Usuario, dados: dict) -> TransacaoPagamento:
        """Despacha a chamada para o método de pagamento específico."""
        processadores = {
            PAGAMENTO_PIX: self._processar_pix,
            PAGAMENTO_BOLETO: self._processar_boleto,
            PAGAMENTO_CARTAO: self._processar_cartao,
        }
        if metodo not in processadores:
            raise DadosInvalidosError(f"Método de pagamento '{metodo}' não suportado.")
        return processadores[metodo](pedido, usuario, dados or {})

    def buscar_pagamento(self, transacao_id: str) -> TransacaoPagamento:
        """Busca o status atual de um pagamento (usado pelo webhook)."""
        url = f"{self.api_base_url}/payments/{transacao_id}"
        try:
            response = requests.get(url, headers=self._headers(), timeout=self.TIMEOUT_CONSULTA)
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error("[MercadoPago] Falha ao buscar pagamento %s: %s", transacao_id, e)
            raise ServicoExternoError("Falha ao buscar status da transação no Mercado Pago.")

        return self._para_transacao(data)


class MelhorEnvioGateway(IProvedorFrete):
    """
    Cliente da API de cotação do Melhor Envio.
    Só traduz HTTP; o fallback para a estimativa fica no ResolvedorFrete.
    """

    URLS = {
        "production": "https://melhorenvio.com.br",
        "sandbox": "https://sandbox.melhorenvio.com.br",
    }
    TIMEOUT = 10

    def __init__(self, user_agent: str = "PrintBrasil (contato@printbrasil.com)"):
        self.user_agent = user_agent

    def cotar(
        self,
        cep_origem: str,
        cep_destino: str,
        pacote: Pacote,
        valor_seguro: Decimal,
        token: str,
        ambiente: str,
    ) -> List[Dict[str, Any]]:
        base_url = self.URLS["production"] if ambiente == "production" else self.URLS["sandbox"]
        payload = {
            "from": {"postal_code": cep_origem},
            "to": {"postal_code": cep_destino},
            "package": {
                "height": float(pacote.altura),
                "width": float(pacote.largura),
                "length": float(pacote.comprimento),
                "weight": float(pacote.peso),
            },
            "options": {
                "insurance_value": float(valor_seguro or 0),
                "receipt": False,
                "own_hand": False,
            },
        }
        headers = {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {token}",
            "User-Agent": self.user_agent,
        }

        try:
            response = requests.post(f"{base_url}/api/v2/me/shipment/calculate", json=payload,
                                     headers=headers, timeout=self.TIMEOUT)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.HTTPError as e:
            logger.warning("[MelhorEnvio] HTTP %s: %s", e.response.status_code, _mensagem_erro(e.response))
            raise ServicoExternoError(f"Melhor Envio respondeu {e.response.status_code}.")
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.warning("[MelhorEnvio] Falha de comunicação: %s", e)
            raise ServicoExternoError("Falha de comunicação com o Melhor Envio.")

        if not isinstance(data, list):
            logger.warning("[MelhorEnvio] Resposta inesperada: %s", data)
            raise ServicoExternoError("Resposta inesperada do Melhor Envio.")
        return data
