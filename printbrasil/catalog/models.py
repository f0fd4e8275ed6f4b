import uuid

from django.core.exceptions import ValidationError
from django.db import models

from printbrasil.core.entities import MODO_POR_AREA, MODO_UNIDADE_FIXA

# ====================================================================
# Produto
# ====================================================================

class Produto(models.Model):
    """
    Produto do catálogo (banner, adesivo, lona...).
    O preço gravado aqui é o que vale no recálculo do checkout.
    """
    MODO_PRECO_CHOICES = [
        (MODO_POR_AREA, 'Por m² (largura x altura)'),
        (MODO_UNIDADE_FIXA, 'Por unidade'),
    ]

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    nome = models.CharField(max_length=255, verbose_name="Nome do Produto")
    descricao = models.TextField(blank=True, verbose_name="Descrição")
    categoria = models.CharField(max_length=50, default='banner', verbose_name="Categoria")

    # Precificação
    modo_preco = models.CharField(max_length=20, choices=MODO_PRECO_CHOICES, default=MODO_POR_AREA)
    preco_m2 = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True, verbose_name="Preço por m²")
    preco_unitario = models.DecimalField(max_digits=10, decimal_places=2, blank=True, null=True, verbose_name="Preço Unitário")

    # Limites de impressão (metros)
    largura_maxima = models.DecimalField(max_digits=6, decimal_places=2, blank=True, null=True, verbose_name="Largura Máxima (m)")
    altura_maxima = models.DecimalField(max_digits=6, decimal_places=2, blank=True, null=True, verbose_name="Altura Máxima (m)")

    imagem_url = models.URLField(max_length=500, blank=True, null=True, verbose_name="URL da Imagem")
    ativo = models.BooleanField(default=True)

    # Datas
    data_criacao = models.DateTimeField(auto_now_add=True)
    data_atualizacao = models.DateTimeField(auto_now=True, null=True)

    class Meta:
        verbose_name = "Produto"
        verbose_name_plural = "Produtos"
        ordering = ['nome']
        db_table = 'catalogo_produto'

    def __str__(self):
        return self.nome

    def clean(self):
        """Exige o preço positivo correspondente ao modo de precificação."""
        if self.modo_preco == MODO_POR_AREA:
            if self.preco_m2 is None or self.preco_m2 <= 0:
                raise ValidationError({'preco_m2': 'Produtos por m² precisam de preço por m² positivo.'})
        elif self.preco_unitario is None or self.preco_unitario <= 0:
            raise ValidationError({'preco_unitario': 'Produtos por unidade precisam de preço unitário positivo.'})

    @property
    def preco_formatado(self):
        """Retorna o preço formatado em Real Brasileiro."""
        preco = self.preco_m2 if self.modo_preco == MODO_POR_AREA else self.preco_unitario
        if preco is None:
            return "-"
        texto = f"R$ {preco:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")
        return f"{texto}/m²" if self.modo_preco == MODO_POR_AREA else texto
