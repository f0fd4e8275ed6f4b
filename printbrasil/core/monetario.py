"""
Aritmética monetária com Decimal.

Toda comparação de valores do pedido passa por aqui para não acumular erro
de ponto flutuante ao somar dezenas de itens.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from printbrasil.core.exceptions import DadosInvalidosError, DimensoesInvalidasError

CENTAVO = Decimal("0.01")
ZERO = Decimal("0.00")
TOLERANCIA_PADRAO = Decimal("0.01")


def converter_decimal(valor, campo: str = "valor", erro=DadosInvalidosError) -> Decimal:
    """
    Converte texto ou número em Decimal finito.

    Floats passam por str() para que 0.1 vire Decimal("0.1") e não a
    representação binária inteira. Booleanos são recusados.
    """
    if valor is None or isinstance(valor, bool):
        raise erro(f"Valor inválido para {campo}.")

    try:
        numero = valor if isinstance(valor, Decimal) else Decimal(str(valor).strip())
    except (InvalidOperation, ValueError):
        raise erro(f"Valor inválido para {campo}.")

    if not numero.is_finite():
        raise erro(f"Valor inválido para {campo}.")
    return numero


def arredondar_moeda(valor: Decimal) -> Decimal:
    """Arredonda para centavos, meio para cima (172.125 -> 172.13)."""
    return Decimal(valor).quantize(CENTAVO, rounding=ROUND_HALF_UP)


def calcular_area(largura, altura) -> Decimal:
    """Área em m² (largura x altura, ambas em metros e positivas)."""
    largura = converter_decimal(largura, "largura", DimensoesInvalidasError)
    altura = converter_decimal(altura, "altura", DimensoesInvalidasError)
    if largura <= 0 or altura <= 0:
        raise DimensoesInvalidasError("Dimensões inválidas: largura e altura devem ser positivas.")
    return largura * altura


def dentro_da_tolerancia(a: Decimal, b: Decimal, tolerancia: Decimal = TOLERANCIA_PADRAO) -> bool:
    return abs(Decimal(a) - Decimal(b)) <= tolerancia
