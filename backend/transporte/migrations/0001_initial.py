import datetime

import django.contrib.auth.models
import django.contrib.auth.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


def endereco_fields():
    return [
        ('logradouro', models.CharField(blank=True, max_length=255, null=True)),
        ('numero', models.CharField(blank=True, max_length=20, null=True)),
        ('bairro', models.CharField(blank=True, max_length=100, null=True)),
        ('cidade', models.CharField(blank=True, max_length=100, null=True)),
        ('estado', models.CharField(blank=True, max_length=2, null=True)),
        ('cep', models.CharField(blank=True, max_length=9, null=True)),
        ('referencia', models.CharField(blank=True, max_length=255, null=True)),
    ]


PERIODO_CHOICES = [
    ('integral', 'Integral'), ('manha', 'Manhã'), ('almoco', 'Almoço'),
    ('tarde', 'Tarde'), ('noite', 'Noite'),
]
GENERO_CHOICES = [
    ('masculino', 'Masculino'), ('feminino', 'Feminino'),
    ('prefiro_nao_informar', 'Prefiro não informar'),
]


def dados_passageiro_fields():
    return endereco_fields() + [
        ('nome', models.CharField(max_length=255)),
        ('periodo', models.CharField(blank=True, choices=PERIODO_CHOICES, max_length=10, null=True)),
        ('genero', models.CharField(blank=True, choices=GENERO_CHOICES, max_length=25, null=True)),
        ('observacoes', models.TextField(blank=True, null=True)),
        ('nome_responsavel', models.CharField(max_length=255)),
        ('email_responsavel', models.EmailField(blank=True, max_length=254, null=True)),
        ('cpf_responsavel', models.CharField(blank=True, max_length=14, null=True)),
        ('telefone_responsavel', models.CharField(blank=True, max_length=20, null=True)),
    ]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('auth', '0012_alter_user_first_name_max_length'),
    ]

    operations = [
        migrations.CreateModel(
            name='Motorista',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nome', models.CharField(max_length=255)),
                ('cpf_cnpj', models.CharField(blank=True, max_length=18, null=True)),
                ('email', models.EmailField(blank=True, max_length=254, null=True)),
                ('telefone', models.CharField(blank=True, max_length=20, null=True)),
                ('chave_pix', models.CharField(blank=True, max_length=140, null=True)),
                ('tipo_chave_pix', models.CharField(blank=True, choices=[('CPF', 'CPF'), ('CNPJ', 'CNPJ'), ('EMAIL', 'E-mail'), ('TELEFONE', 'Telefone'), ('ALEATORIA', 'Chave Aleatória')], max_length=10, null=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['nome'],
            },
        ),
        migrations.CreateModel(
            name='Usuario',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('password', models.CharField(max_length=128, verbose_name='password')),
                ('last_login', models.DateTimeField(blank=True, null=True, verbose_name='last login')),
                ('is_superuser', models.BooleanField(default=False, help_text='Designates that this user has all permissions without explicitly assigning them.', verbose_name='superuser status')),
                ('username', models.CharField(error_messages={'unique': 'A user with that username already exists.'}, help_text='Required. 150 characters or fewer. Letters, digits and @/./+/-/_ only.', max_length=150, unique=True, validators=[django.contrib.auth.validators.UnicodeUsernameValidator()], verbose_name='username')),
                ('first_name', models.CharField(blank=True, max_length=150, verbose_name='first name')),
                ('last_name', models.CharField(blank=True, max_length=150, verbose_name='last name')),
                ('email', models.EmailField(blank=True, max_length=254, verbose_name='email address')),
                ('is_staff', models.BooleanField(default=False, help_text='Designates whether the user can log into this admin site.', verbose_name='staff status')),
                ('is_active', models.BooleanField(default=True, help_text='Designates whether this user should be treated as active. Unselect this instead of deleting accounts.', verbose_name='active')),
                ('date_joined', models.DateTimeField(default=django.utils.timezone.now, verbose_name='date joined')),
                ('role', models.CharField(choices=[('admin', 'Administrador'), ('motorista', 'Motorista')], default='motorista', max_length=20)),
                ('is_email_verified', models.BooleanField(default=False)),
                ('motorista', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='usuarios', to='transporte.motorista')),
                ('groups', models.ManyToManyField(blank=True, help_text='The groups this user belongs to. A user will get all permissions granted to each of their groups.', related_name='usuario_set', related_query_name='usuario', to='auth.group', verbose_name='groups')),
                ('user_permissions', models.ManyToManyField(blank=True, help_text='Specific permissions for this user.', related_name='usuario_set', related_query_name='usuario', to='auth.permission', verbose_name='user permissions')),
            ],
            options={
                'verbose_name': 'user',
                'verbose_name_plural': 'users',
                'abstract': False,
            },
            managers=[
                ('objects', django.contrib.auth.models.UserManager()),
            ],
        ),
        migrations.CreateModel(
            name='Escola',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
            ] + endereco_fields() + [
                ('nome', models.CharField(max_length=255)),
                ('telefone', models.CharField(blank=True, max_length=20, null=True)),
                ('ativo', models.BooleanField(default=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
                ('motorista', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='escolas', to='transporte.motorista')),
            ],
            options={
                'ordering': ['nome'],
            },
        ),
        migrations.CreateModel(
            name='Veiculo',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('placa', models.CharField(max_length=7)),
                ('marca', models.CharField(blank=True, max_length=50)),
                ('modelo', models.CharField(blank=True, max_length=50)),
                ('ano_fabricacao', models.PositiveIntegerField(blank=True, null=True)),
                ('ano_modelo', models.PositiveIntegerField(blank=True, null=True)),
                ('capacidade', models.PositiveIntegerField(blank=True, null=True)),
                ('ativo', models.BooleanField(default=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
                ('motorista', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='veiculos', to='transporte.motorista')),
            ],
            options={
                'ordering': ['placa'],
                'constraints': [models.UniqueConstraint(fields=('motorista', 'placa'), name='veiculo_placa_unica_por_motorista')],
            },
        ),
        migrations.CreateModel(
            name='Passageiro',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
            ] + dados_passageiro_fields() + [
                ('valor_cobranca', models.DecimalField(decimal_places=2, max_digits=10)),
                ('dia_vencimento', models.PositiveSmallIntegerField(default=10, help_text='Dia do mês para vencimento (1-31)')),
                ('ativo', models.BooleanField(default=True)),
                ('enviar_cobranca_automatica', models.BooleanField(default=False)),
                ('asaas_customer_id', models.CharField(blank=True, max_length=100, null=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
                ('motorista', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='passageiros', to='transporte.motorista')),
                ('escola', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='passageiros', to='transporte.escola')),
                ('veiculo', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='passageiros', to='transporte.veiculo')),
            ],
            options={
                'ordering': ['nome'],
            },
        ),
        migrations.CreateModel(
            name='PrePassageiro',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
            ] + dados_passageiro_fields() + [
                ('valor_cobranca', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('dia_vencimento', models.PositiveSmallIntegerField(blank=True, null=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('motorista', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='pre_passageiros', to='transporte.motorista')),
                ('escola', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='pre_passageiros', to='transporte.escola')),
            ],
            options={
                'verbose_name': 'Pré-passageiro',
                'verbose_name_plural': 'Pré-passageiros',
                'ordering': ['-criado_em'],
            },
        ),
        migrations.CreateModel(
            name='Cobranca',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('mes', models.PositiveSmallIntegerField()),
                ('ano', models.PositiveSmallIntegerField()),
                ('valor', models.DecimalField(decimal_places=2, max_digits=10)),
                ('status', models.CharField(choices=[('pago', 'Pago'), ('pendente', 'Pendente'), ('cancelada', 'Cancelada')], default='pendente', max_length=10)),
                ('data_vencimento', models.DateField()),
                ('data_pagamento', models.DateField(blank=True, null=True)),
                ('tipo_pagamento', models.CharField(blank=True, choices=[('PIX', 'PIX'), ('dinheiro', 'Dinheiro'), ('cartao-debito', 'Cartão de Débito'), ('cartao-credito', 'Cartão de Crédito'), ('transferencia', 'Transferência'), ('boleto', 'Boleto')], max_length=20, null=True)),
                ('valor_pago', models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ('pagamento_manual', models.BooleanField(default=False)),
                ('origem', models.CharField(choices=[('manual', 'Manual'), ('automatica', 'Automática')], default='manual', max_length=10)),
                ('desativar_lembretes', models.BooleanField(default=False)),
                ('asaas_payment_id', models.CharField(blank=True, max_length=100, null=True)),
                ('qr_code_payload', models.TextField(blank=True, null=True)),
                ('location_url', models.URLField(blank=True, max_length=500, null=True)),
                ('recibo_url', models.URLField(blank=True, max_length=500, null=True)),
                ('data_envio_ultima_notificacao', models.DateTimeField(blank=True, null=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
                ('motorista', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='cobrancas', to='transporte.motorista')),
                ('passageiro', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='cobrancas', to='transporte.passageiro')),
            ],
            options={
                'ordering': ['data_vencimento', 'id'],
            },
        ),
        migrations.CreateModel(
            name='CobrancaNotificacao',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tipo_evento', models.CharField(max_length=30)),
                ('canal', models.CharField(default='whatsapp', max_length=20)),
                ('sucesso', models.BooleanField(default=True)),
                ('erro', models.TextField(blank=True)),
                ('data_envio', models.DateTimeField(auto_now_add=True)),
                ('cobranca', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='notificacoes', to='transporte.cobranca')),
            ],
            options={
                'verbose_name': 'Notificação de Cobrança',
                'verbose_name_plural': 'Notificações de Cobrança',
                'ordering': ['-data_envio'],
            },
        ),
        migrations.CreateModel(
            name='Gasto',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('valor', models.DecimalField(decimal_places=2, max_digits=10)),
                ('data', models.DateField()),
                ('categoria', models.CharField(choices=[('combustivel', 'Combustível'), ('manutencao', 'Manutenção'), ('salario', 'Salário'), ('vistorias', 'Vistorias'), ('documentacao', 'Documentação'), ('administrativa', 'Administrativa'), ('outros', 'Outros')], max_length=20)),
                ('descricao', models.TextField(blank=True, null=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
                ('motorista', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='gastos', to='transporte.motorista')),
                ('veiculo', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='gastos', to='transporte.veiculo')),
            ],
            options={
                'ordering': ['-data', '-id'],
            },
        ),
        migrations.CreateModel(
            name='Plano',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('nome', models.CharField(max_length=100)),
                ('slug', models.SlugField(unique=True)),
                ('tipo', models.CharField(choices=[('base', 'Plano base'), ('sub', 'Sub-plano (faixa de franquia)')], default='base', max_length=4)),
                ('descricao_curta', models.CharField(blank=True, max_length=255)),
                ('preco', models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ('preco_promocional', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('promocao_ativa', models.BooleanField(default=False)),
                ('beneficios', models.JSONField(blank=True, default=list)),
                ('limite_passageiros', models.PositiveIntegerField(blank=True, help_text='Vazio = ilimitado', null=True)),
                ('franquia_cobrancas_mes', models.PositiveIntegerField(default=0)),
                ('permite_cobrancas', models.BooleanField(default=False)),
                ('trial_days', models.PositiveIntegerField(default=0)),
                ('ativo', models.BooleanField(default=True)),
                ('ordem', models.IntegerField(default=0)),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='sub_planos', to='transporte.plano')),
            ],
            options={
                'verbose_name': 'Plano',
                'verbose_name_plural': 'Planos',
                'ordering': ['ordem', 'franquia_cobrancas_mes'],
            },
        ),
        migrations.CreateModel(
            name='AssinaturaMotorista',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('status', models.CharField(choices=[('ativa', 'Ativa'), ('trial', 'Período de Teste'), ('suspensa', 'Suspensa'), ('pendente_pagamento', 'Pendente de Pagamento'), ('cancelada', 'Cancelada')], default='ativa', max_length=20)),
                ('ativo', models.BooleanField(default=True)),
                ('franquia_contratada_cobrancas', models.PositiveIntegerField(default=0)),
                ('valor_mensal', models.DecimalField(decimal_places=2, default=0, max_digits=8)),
                ('trial_end_at', models.DateTimeField(blank=True, null=True)),
                ('vigencia_fim', models.DateField(blank=True, null=True)),
                ('pending_franquia', models.PositiveIntegerField(blank=True, null=True)),
                ('pending_valor_mensal', models.DecimalField(blank=True, decimal_places=2, max_digits=8, null=True)),
                ('asaas_customer_id', models.CharField(blank=True, max_length=100, null=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
                ('motorista', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='assinatura', to='transporte.motorista')),
                ('plano', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assinaturas', to='transporte.plano')),
                ('pending_plano', models.ForeignKey(blank=True, help_text='Plano escolhido aguardando pagamento', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assinaturas_pendentes', to='transporte.plano')),
            ],
            options={
                'verbose_name': 'Assinatura do Motorista',
                'verbose_name_plural': 'Assinaturas dos Motoristas',
            },
        ),
        migrations.CreateModel(
            name='AssinaturaCobranca',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('franquia', models.PositiveIntegerField(blank=True, null=True)),
                ('valor', models.DecimalField(decimal_places=2, max_digits=8)),
                ('status', models.CharField(choices=[('pago', 'Pago'), ('pendente_pagamento', 'Pendente de Pagamento'), ('cancelada', 'Cancelada')], default='pendente_pagamento', max_length=20)),
                ('billing_type', models.CharField(choices=[('subscription', 'Mensalidade'), ('upgrade_plan', 'Troca de plano'), ('upgrade', 'Aumento de franquia'), ('downgrade', 'Redução de franquia'), ('activation', 'Ativação'), ('expansion', 'Expansão'), ('renewal', 'Renovação')], default='subscription', max_length=20)),
                ('data_vencimento', models.DateField()),
                ('data_pagamento', models.DateField(blank=True, null=True)),
                ('asaas_payment_id', models.CharField(blank=True, max_length=100, null=True)),
                ('qr_code_payload', models.TextField(blank=True, null=True)),
                ('invoice_url', models.URLField(blank=True, max_length=500, null=True)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('assinatura', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='cobrancas', to='transporte.assinaturamotorista')),
                ('plano', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, to='transporte.plano')),
            ],
            options={
                'verbose_name': 'Cobrança da Assinatura',
                'verbose_name_plural': 'Cobranças da Assinatura',
                'ordering': ['-data_vencimento', '-id'],
            },
        ),
        migrations.CreateModel(
            name='WebhookLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('event_type', models.CharField(max_length=100)),
                ('event_id', models.CharField(blank=True, max_length=100)),
                ('asaas_payment_id', models.CharField(blank=True, max_length=100)),
                ('payload', models.JSONField()),
                ('processed', models.BooleanField(default=False)),
                ('error', models.TextField(blank=True)),
                ('recebido_em', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'verbose_name': 'Log de Webhook',
                'ordering': ['-recebido_em'],
            },
        ),
        migrations.CreateModel(
            name='ConfiguracaoMotorista',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('horario_envio', models.TimeField(default=datetime.time(9, 0))),
                ('mensagem_lembrete_antecipada', models.TextField(default='Olá, {responsavel}! Passando para lembrar que a mensalidade do transporte de {passageiro} ({mes}) no valor de {valor} vence em {vencimento}. Chave PIX: {pix}')),
                ('mensagem_lembrete_dia', models.TextField(default='Olá, {responsavel}! A mensalidade do transporte de {passageiro} ({mes}) no valor de {valor} vence hoje. Chave PIX: {pix}')),
                ('mensagem_lembrete_atraso', models.TextField(default='Olá, {responsavel}! A mensalidade do transporte de {passageiro} ({mes}) no valor de {valor} venceu em {vencimento}. Se já pagou, desconsidere. {motorista}')),
                ('dias_antes_vencimento', models.PositiveSmallIntegerField(default=3)),
                ('dias_apos_vencimento', models.PositiveSmallIntegerField(default=3)),
                ('criado_em', models.DateTimeField(auto_now_add=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
                ('motorista', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='configuracao', to='transporte.motorista')),
            ],
            options={
                'verbose_name': 'Configuração do Motorista',
                'verbose_name_plural': 'Configurações dos Motoristas',
            },
        ),
        migrations.CreateModel(
            name='WhatsappInstancia',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('instance_name', models.CharField(max_length=100, unique=True)),
                ('status', models.CharField(choices=[('CONNECTED', 'Conectado'), ('DISCONNECTED', 'Desconectado'), ('CONNECTING', 'Conectando'), ('UNKNOWN', 'Desconhecido'), ('NOT_FOUND', 'Não encontrado')], default='DISCONNECTED', max_length=20)),
                ('telefone', models.CharField(blank=True, max_length=20, null=True)),
                ('atualizado_em', models.DateTimeField(auto_now=True)),
                ('motorista', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='whatsapp', to='transporte.motorista')),
            ],
            options={
                'verbose_name': 'Instância de WhatsApp',
                'verbose_name_plural': 'Instâncias de WhatsApp',
            },
        ),
    ]
