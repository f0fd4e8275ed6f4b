import uuid

from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Produto',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('nome', models.CharField(max_length=255, verbose_name='Nome do Produto')),
                ('descricao', models.TextField(blank=True, verbose_name='Descrição')),
                ('categoria', models.CharField(default='banner', max_length=50, verbose_name='Categoria')),
                ('modo_preco', models.CharField(choices=[('per_area', 'Por m² (largura x altura)'), ('fixed_unit', 'Por unidade')], default='per_area', max_length=20)),
                ('preco_m2', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='Preço por m²')),
                ('preco_unitario', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True, verbose_name='Preço Unitário')),
                ('largura_maxima', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True, verbose_name='Largura Máxima (m)')),
                ('altura_maxima', models.DecimalField(blank=True, decimal_places=2, max_digits=6, null=True, verbose_name='Altura Máxima (m)')),
                ('imagem_url', models.URLField(blank=True, max_length=500, null=True, verbose_name='URL da Imagem')),
                ('ativo', models.BooleanField(default=True)),
                ('data_criacao', models.DateTimeField(auto_now_add=True)),
                ('data_atualizacao', models.DateTimeField(auto_now=True, null=True)),
            ],
            options={
                'verbose_name': 'Produto',
                'verbose_name_plural': 'Produtos',
                'db_table': 'catalogo_produto',
                'ordering': ['nome'],
            },
        ),
    ]
