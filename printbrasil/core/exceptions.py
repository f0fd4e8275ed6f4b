class BaseErroCore(Exception):
    """Classe base para todas as exceções da Camada Core."""
    mensagem_padrao = "Erro no processamento da requisição."

    def __init__(self, message=None):
        self.message = message or self.mensagem_padrao
        super().__init__(self.message)


# ===============================================
# ERROS DE VALIDAÇÃO (dados do cliente)
# ===============================================

class DadosInvalidosError(BaseErroCore):
    """Erro levantado quando dados inválidos são fornecidos."""
    mensagem_padrao = "Os dados fornecidos são inválidos."


class DimensoesInvalidasError(DadosInvalidosError):
    """Largura/altura não positivas, não finitas ou acima do máximo do produto."""
    mensagem_padrao = "Dimensões inválidas."


class QuantidadeInvalidaError(DadosInvalidosError):
    """Quantidade de produto por unidade que não é um inteiro positivo."""
    mensagem_padrao = "Quantidade inválida."


class TaxaInvalidaError(DadosInvalidosError):
    mensagem_padrao = "Taxa de criação de arte inválida."


class FreteInvalidoError(DadosInvalidosError):
    """Frete incompatível com o tipo de entrega escolhido."""
    mensagem_padrao = "Valor de frete inválido para o tipo de entrega."


class CepInvalidoError(DadosInvalidosError):
    mensagem_padrao = "CEP de destino inválido."


class CarrinhoVazioError(DadosInvalidosError):
    """Erro levantado ao tentar fazer checkout com carrinho vazio."""
    mensagem_padrao = "Carrinho vazio."


class StatusInvalidoError(DadosInvalidosError):
    """Erro levantado ao tentar definir um status de pedido inválido."""
    mensagem_padrao = "O status fornecido não é válido para um pedido."


# ===============================================
# ERROS DE PERSISTÊNCIA E ENTIDADE
# ===============================================

class ItemNaoEncontradoError(BaseErroCore):
    """Erro levantado quando um item (genérico) não é encontrado."""
    mensagem_padrao = "O item solicitado não foi encontrado."


class ProdutoNaoEncontradoError(ItemNaoEncontradoError):
    mensagem_padrao = "Produto não encontrado."


class PedidoNaoEncontradoError(ItemNaoEncontradoError):
    """Erro específico para Pedidos não encontrados."""
    mensagem_padrao = "Pedido não encontrado."


class PersistenciaError(BaseErroCore):
    """Falha do banco de dados. A causa real só vai para o log."""
    mensagem_padrao = "Erro ao criar pedido."


# ===============================================
# ERROS DE CONFIANÇA E ACESSO
# ===============================================

class ValoresDivergentesError(BaseErroCore):
    """
    Os totais enviados pelo cliente não batem com o recálculo do servidor.
    Indica carrinho adulterado ou desatualizado, não um simples erro de digitação.
    """
    mensagem_padrao = "Valores calculados não conferem. Por favor, recarregue o carrinho."


class AcessoNegadoError(BaseErroCore):
    mensagem_padrao = "Acesso negado."


# ===============================================
# ERROS DE SERVIÇOS EXTERNOS E CONFIGURAÇÃO
# ===============================================

class ServicoExternoError(BaseErroCore):
    """Falha de comunicação com provedor externo (frete ou pagamento)."""
    mensagem_padrao = "Falha de comunicação com o serviço externo."


class PagamentoFalhouError(ServicoExternoError):
    """Erro levantado quando o Gateway de Pagamento rejeita a transação."""
    mensagem_padrao = "A transação de pagamento foi rejeitada ou falhou."


class ConfiguracaoAusenteError(BaseErroCore):
    """Token/segredo de provedor externo não configurado."""
    mensagem_padrao = "Serviço não configurado."
