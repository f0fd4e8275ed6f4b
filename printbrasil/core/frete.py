# printbrasil/core/frete.py
"""
Cálculo de frete.

`estimar_frete` é a calculadora local (pura, sem I/O) usada quando o provedor
externo está fora do ar ou não devolve nenhuma cotação aproveitável.
`ResolvedorFrete` tenta o provedor real e cai na estimativa em qualquer falha,
para que o checkout nunca fique sem opção de entrega.
"""
import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

from printbrasil.core.entities import (
    ConfiguracaoFrete, CotacaoFrete, OpcaoFrete, Pacote, PACOTE_PADRAO
)
from printbrasil.core.exceptions import (
    CepInvalidoError, ConfiguracaoAusenteError, DadosInvalidosError, ServicoExternoError
)
from printbrasil.core.ports import IProvedorFrete
from printbrasil.core.monetario import ZERO, arredondar_moeda, converter_decimal

logger = logging.getLogger(__name__)

# CEP do depósito de onde saem todas as encomendas.
CEP_ORIGEM = "01310100"

DIVISOR_CUBAGEM = Decimal("6000")
TRANSPORTADORA_ESTIMATIVA = "Transportadora Genérica"


@dataclass(frozen=True)
class ParametrosEstimativa:
    """
    Constantes da estimativa local. São valores de ajuste, não tabela real
    de transportadora.
    """
    prefixo_origem: str = CEP_ORIGEM[:2]
    base_economico: Decimal = Decimal("15.00")
    base_expresso: Decimal = Decimal("25.00")
    por_distancia: Decimal = Decimal("0.50")
    por_kg_economico: Decimal = Decimal("2.00")
    por_kg_expresso: Decimal = Decimal("3.50")
    prazo_max_economico: int = 15
    prazo_max_expresso: int = 7


def normalizar_cep(cep) -> str:
    """Remove pontuação e exige os 8 dígitos do CEP."""
    digitos = re.sub(r"[\s.\-]", "", str(cep or ""))
    if len(digitos) != 8 or not digitos.isdigit():
        raise CepInvalidoError(f"CEP de destino inválido: {cep!r}.")
    return digitos


def calcular_peso_cobravel(pacote: Pacote) -> Decimal:
    """Maior valor entre o peso real e o peso cubado (A x L x C / 6000)."""
    volumetrico = pacote.altura * pacote.largura * pacote.comprimento / DIVISOR_CUBAGEM
    return max(pacote.peso, volumetrico)


def estimar_frete(
    cep_destino: str,
    pacote: Pacote = PACOTE_PADRAO,
    parametros: Optional[ParametrosEstimativa] = None,
) -> List[OpcaoFrete]:
    """
    Calcula as opções Econômico e Expresso a partir da distância entre os
    dois primeiros dígitos do CEP de destino e os da origem.
    """
    parametros = parametros or ParametrosEstimativa()

    distancia = abs(int(normalizar_cep(cep_destino)[:2]) - int(parametros.prefixo_origem))
    peso = calcular_peso_cobravel(pacote)
    adicional_distancia = parametros.por_distancia * distancia

    preco_economico = arredondar_moeda(
        parametros.base_economico + adicional_distancia + peso * parametros.por_kg_economico
    )
    preco_expresso = arredondar_moeda(
        parametros.base_expresso + adicional_distancia + peso * parametros.por_kg_expresso
    )

    return [
        OpcaoFrete(
            id="estimativa-economico",
            transportadora=TRANSPORTADORA_ESTIMATIVA,
            servico="Econômico",
            prazo_dias=min(parametros.prazo_max_economico, 5 + distancia // 3),
            preco=preco_economico,
            desconto=ZERO,
            preco_final=preco_economico,
        ),
        OpcaoFrete(
            id="estimativa-expresso",
            transportadora=TRANSPORTADORA_ESTIMATIVA,
            servico="Expresso",
            prazo_dias=min(parametros.prazo_max_expresso, 2 + distancia // 5),
            preco=preco_expresso,
            desconto=ZERO,
            preco_final=preco_expresso,
        ),
    ]


def mapear_opcao_provedor(bruto: Dict[str, Any]) -> Optional[OpcaoFrete]:
    """
    Converte uma cotação do Melhor Envio em OpcaoFrete. Cotações com 'error'
    ou sem preço válido não são aproveitáveis e retornam None.
    """
    if not isinstance(bruto, dict) or bruto.get("error"):
        return None

    try:
        preco = arredondar_moeda(converter_decimal(bruto.get("price"), "price"))
        desconto = arredondar_moeda(converter_decimal(bruto.get("discount") or 0, "discount"))
        preco_negociado = bruto.get("custom_price")
        preco_final = (
            arredondar_moeda(converter_decimal(preco_negociado, "custom_price"))
            if preco_negociado not in (None, "")
            else preco
        )
        prazo = int(bruto.get("custom_delivery_time") or bruto.get("delivery_time") or 0)
    except (DadosInvalidosError, TypeError, ValueError):
        return None

    empresa = bruto.get("company") or {}

    return OpcaoFrete(
        id=str(bruto.get("id")),
        transportadora=empresa.get("name", "") if isinstance(empresa, dict) else str(empresa),
        servico=bruto.get("name", ""),
        prazo_dias=prazo,
        preco=preco,
        desconto=desconto,
        preco_final=preco_final,
    )


class ResolvedorFrete:
    """
    Orquestra a cotação real e o fallback local.
    A configuração do provedor é recebida no construtor, nunca lida no meio da chamada.
    """

    def __init__(
        self,
        provedor: IProvedorFrete,
        configuracao: ConfiguracaoFrete,
        cep_origem: str = CEP_ORIGEM,
        parametros_estimativa: Optional[ParametrosEstimativa] = None,
    ):
        self.provedor = provedor
        self.configuracao = configuracao
        self.cep_origem = cep_origem
        self.parametros_estimativa = parametros_estimativa

    def _fallback(self, cep_destino: str, pacote: Pacote, motivo: str) -> CotacaoFrete:
        logger.warning("[Frete] Usando estimativa local para %s: %s", cep_destino, motivo)
        return CotacaoFrete(
            opcoes=estimar_frete(cep_destino, pacote, self.parametros_estimativa),
            cep_origem=self.cep_origem,
            fallback=True,
            motivo_fallback=motivo,
        )

    def calcular(
        self,
        cep_destino: str,
        pacote: Optional[Pacote] = None,
        valor_seguro: Decimal = ZERO,
    ) -> CotacaoFrete:
        cep_destino = normalizar_cep(cep_destino)
        pacote = pacote or PACOTE_PADRAO

        if not self.configuracao.token:
            logger.error("[Frete] MELHOR_ENVIO_TOKEN não configurado.")
            raise ConfiguracaoAusenteError("Serviço de frete não configurado.")

        try:
            brutas = self.provedor.cotar(
                cep_origem=self.cep_origem,
                cep_destino=cep_destino,
                pacote=pacote,
                valor_seguro=valor_seguro,
                token=self.configuracao.token,
                ambiente=self.configuracao.ambiente,
            )
        except ServicoExternoError as e:
            return self._fallback(cep_destino, pacote, e.message)

        opcoes = [opcao for opcao in map(mapear_opcao_provedor, brutas or []) if opcao]
        if not opcoes:
            return self._fallback(cep_destino, pacote, "Nenhuma opção de frete disponível no provedor.")

        return CotacaoFrete(opcoes=opcoes, cep_origem=self.cep_origem)
